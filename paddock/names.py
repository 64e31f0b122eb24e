from __future__ import annotations
from typing import List, Optional

from .rng import RNG

HORSE_NAMES = [
    "Thunder Bolt","Lightning Strike","Wind Runner","Storm Chaser","Fire Spirit","Golden Arrow",
    "Silver Bullet","Midnight Express","Royal Champion","Swift Shadow","Desert Storm","Ocean Breeze",
    "Mountain King","Star Dancer","Wild Thunder","Blazing Comet","Dawn Rider","Storm Cloud",
    "Flash Point","Night Fury","Crimson Flame","Arctic Frost","Copper Canyon","Velvet Storm",
    "Diamond Dust","Emerald Knight","Sunset Warrior","Morning Glory","Iron Will","Mystic Moon",
    "Thunder Heart","Shadow Walker","Phantom Rider","Crystal Falls","Burning Sky","Steel Tempest",
    "Sapphire Dream","Raging River","Autumn Blaze","Winters Edge","Starlight Express","Rebel Spirit",
    "Noble Quest","Silver Storm","Golden Thunder","Dark Knight","Blazing Trail","Storm Rider",
    "Lightning Flash","Wind Dancer","Fire Storm","Moonbeam","Spirit Walker","Thunder Strike",
    "Wildfire","Storm King","Shadow Lightning","Crystal Thunder","Midnight Storm","Golden Storm",
    "Silver Lightning","Fire Walker","Storm Spirit","Thunder Rider","Lightning King","Wind Storm",
    "Fire Thunder","Storm Shadow","Thunder Wind","Lightning Storm","Storm Fire",
]

def random_name(rng: RNG, pool: Optional[List[str]] = None) -> str:
    return rng.choice(pool or HORSE_NAMES)
