from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence

from .config import DEFAULT_CONFIG, GameConfig
from .economy import comeback_active
from .models import Horse, next_horse_id
from .names import random_name
from .rng import RNG

logger = logging.getLogger(__name__)

# Post-breeding bands are wider than generation bands: exceptional foals are possible.
BRED_STAT_MIN, BRED_STAT_MAX = 30, 105
BRED_DIST_MIN, BRED_DIST_MAX = 600, 2800

INHERIT_P = 0.6
MUTATION_P = 0.2
MAX_TRAITS = 3

# (mean, sd) of the normal noise added to each averaged stat
SPEED_NOISE = (5.0, 5.0)
BOOSTER_NOISE = (0.0, 10.0)
DISTANCE_NOISE = (0.0, 200.0)
HUE_JITTER = 30

def clamp_int(x: int, lo: int, hi: int) -> int:
    return lo if x < lo else hi if x > hi else x

def blend_hue(h1: int, h2: int) -> float:
    """Circular mean of two hues in degrees (the short way round the wheel)."""
    a, b = math.radians(h1), math.radians(h2)
    x = math.cos(a) + math.cos(b)
    y = math.sin(a) + math.sin(b)
    if abs(x) < 1e-9 and abs(y) < 1e-9:
        # opposite hues: no preferred direction
        return (h1 + h2) / 2.0
    return math.degrees(math.atan2(y, x)) % 360.0

def inherit_traits(rng: RNG, p1: Sequence[str], p2: Sequence[str], catalog: Sequence[str]) -> List[str]:
    pool: List[str] = []
    for t in list(p1) + list(p2):
        if t not in pool:
            pool.append(t)

    out = [t for t in pool if rng.chance(INHERIT_P)]

    if rng.chance(MUTATION_P):
        fresh = [t for t in catalog if t not in out]
        if fresh:
            out.append(rng.choice(fresh))

    if len(out) > MAX_TRAITS:
        out = rng.sample(out, MAX_TRAITS)

    if not out and catalog:
        out = [rng.choice(list(catalog))]
    return out

def breed_horses(
    rng: RNG,
    parent1: Horse,
    parent2: Horse,
    cfg: GameConfig = DEFAULT_CONFIG,
    race_number: Optional[int] = None,
    wallet: Optional[float] = None,
) -> Horse:
    """Produce one foal from two parents. Parents are not modified."""
    bonus = cfg.comeback_breeding_bonus if comeback_active(race_number, wallet, cfg) else cfg.breeding_bonus

    avg_speed = (parent1.speed + parent2.speed) / 2.0
    avg_booster = (parent1.booster_power + parent2.booster_power) / 2.0
    avg_dist = (parent1.distance_preference + parent2.distance_preference) / 2.0

    speed = int(round(avg_speed * bonus + rng.gauss(*SPEED_NOISE)))
    booster = int(round(avg_booster * bonus + rng.gauss(*BOOSTER_NOISE)))
    dist = int(round(avg_dist + rng.gauss(*DISTANCE_NOISE)))

    traits = inherit_traits(rng, parent1.traits, parent2.traits, list(cfg.traits.keys()))
    hue = int(round(blend_hue(parent1.color, parent2.color) + rng.randint(-HUE_JITTER, HUE_JITTER))) % 360

    foal = Horse(
        id=next_horse_id("BRD"),
        name=random_name(rng),
        speed=clamp_int(speed, BRED_STAT_MIN, BRED_STAT_MAX),
        booster_power=clamp_int(booster, BRED_STAT_MIN, BRED_STAT_MAX),
        distance_preference=clamp_int(dist, BRED_DIST_MIN, BRED_DIST_MAX),
        color=hue,
        is_player=True,
        traits=tuple(traits),
        fatigue=0,
        parents=(parent1.name, parent2.name),
        is_new=True,
    )
    logger.debug(
        "Bred %s x %s -> %s (spd %d, bst %d, dist %d, traits %s, bonus %.2f)",
        parent1.name, parent2.name, foal.name, foal.speed, foal.booster_power,
        foal.distance_preference, ",".join(foal.traits), bonus,
    )
    return foal
