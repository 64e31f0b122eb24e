from __future__ import annotations
from dataclasses import replace
from typing import List, Sequence

from .breeding import clamp_int
from .config import DEFAULT_CONFIG, GameConfig
from .horses import best_speed, generate_horse
from .models import Horse
from .rng import RNG

# Market offers sit around the player's fastest horse.
MARKET_SPEED_SPREAD = 10
MARKET_DIST_SPREAD = 400
MARKET_SPEED_MIN, MARKET_SPEED_MAX = 30, 100

def generate_ai_field(rng: RNG, race_number: int, player_horses: Sequence[Horse], cfg: GameConfig = DEFAULT_CONFIG) -> List[Horse]:
    """AI runners for one race. Strength escalates with race_number and tracks the player's best horse."""
    pbest = best_speed(player_horses, default=cfg.base_speed)
    return [
        generate_horse(rng, cfg, is_player=False, race_number=race_number, player_best_speed=pbest)
        for _ in range(cfg.ai_horses_count)
    ]

def generate_horse_buying_options(rng: RNG, player_horses: Sequence[Horse], cfg: GameConfig = DEFAULT_CONFIG) -> List[Horse]:
    """One distance specialist per race distance, priced implicitly by speed closeness to the stable's best."""
    fastest = int(best_speed(player_horses, default=MARKET_SPEED_MIN))
    out: List[Horse] = []
    for distance in cfg.race_distances:
        speed = rng.randint(fastest - MARKET_SPEED_SPREAD, fastest + MARKET_SPEED_SPREAD)
        pref = rng.randint(distance - MARKET_DIST_SPREAD, distance + MARKET_DIST_SPREAD)
        h = generate_horse(rng, cfg, is_player=False, race_number=1, distance_preference=pref)
        # ownership flips only on purchase
        out.append(replace(h, speed=clamp_int(speed, MARKET_SPEED_MIN, MARKET_SPEED_MAX), is_player=False))
    return out

def purchase_horse(horse: Horse) -> Horse:
    return replace(horse, is_player=True, is_new=True)
