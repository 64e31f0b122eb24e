from __future__ import annotations

"""Horse generation and per-race performance.

calculate_horse_performance() is computed once per race (it becomes the
participant's base_performance). Per-tick variation comes from the race
engine's momentum and phases, never from recomputing this value.
"""

import logging
from typing import Optional, Sequence

from .breeding import clamp_int
from .config import DEFAULT_CONFIG, BoostDef, GameConfig
from .models import Horse, next_horse_id
from .names import random_name
from .progression import get_specialization_bonus
from .rng import RNG

logger = logging.getLogger(__name__)

GEN_DIST_MIN, GEN_DIST_MAX = 800, 2600
BOOSTER_MIN, BOOSTER_MAX = 30, 100
PLAYER_SPEED_MIN, PLAYER_SPEED_MAX = 30, 100

# Largest possible gap between a generated preference and a race distance.
MAX_DISTANCE_DEVIATION = 1800.0
MIN_DISTANCE_FIT = 0.1

SPEED_MIDPOINT, SPEED_HALF_RANGE = 65.0, 35.0
FIT_MIDPOINT, FIT_HALF_RANGE = 0.55, 0.45
FATIGUE_FLOOR = 0.5


def _ai_base_speed(cfg: GameConfig, race_number: int, player_best_speed: Optional[float]) -> float:
    base = cfg.base_speed + cfg.ai_base_speed_bonus + race_number * cfg.ai_speed_scaling
    if player_best_speed is not None:
        # AI strength tracks part of the player's progress.
        base += (player_best_speed - cfg.base_speed) * cfg.ai_player_relative
    return base


def generate_horse(
    rng: RNG,
    cfg: GameConfig = DEFAULT_CONFIG,
    is_player: bool = False,
    race_number: int = 1,
    distance_preference: Optional[int] = None,
    player_best_speed: Optional[float] = None,
) -> Horse:
    if is_player:
        base = float(cfg.base_speed)
        spread = cfg.speed_range
        trait_chance = cfg.player_trait_chance
    else:
        base = _ai_base_speed(cfg, race_number, player_best_speed)
        spread = cfg.ai_speed_variability
        trait_chance = cfg.ai_trait_chance

    speed = rng.randint(int(round(base - spread)), int(round(base + spread)))
    dist = distance_preference if distance_preference is not None else rng.randint(GEN_DIST_MIN, GEN_DIST_MAX)
    booster = rng.randint(BOOSTER_MIN, BOOSTER_MAX)

    catalog = list(cfg.traits.keys())
    n_traits = 2 if rng.chance(trait_chance) else 1
    traits = rng.sample(catalog, min(n_traits, len(catalog)))

    # onboarding assist
    bonus = cfg.first_race_stat_bonus if (is_player and race_number == 1) else 0

    if is_player:
        speed = clamp_int(speed + bonus, PLAYER_SPEED_MIN, PLAYER_SPEED_MAX)
    else:
        speed = clamp_int(speed, cfg.ai_min_speed, cfg.ai_max_speed)

    return Horse(
        id=next_horse_id("PLY" if is_player else "CPU"),
        name=random_name(rng),
        speed=speed,
        booster_power=clamp_int(booster + bonus, BOOSTER_MIN, BOOSTER_MAX),
        distance_preference=int(dist),
        color=rng.randint(0, 359),
        is_player=is_player,
        traits=tuple(traits),
    )


def calculate_distance_fit(horse: Horse, race_distance: int) -> float:
    deviation = abs(horse.distance_preference - race_distance)
    return max(MIN_DISTANCE_FIT, 1.0 - deviation / MAX_DISTANCE_DEVIATION)


def boost_multiplier(boost: Optional[BoostDef], rng: Optional[RNG] = None) -> float:
    if boost is None:
        return 1.0
    lo, hi = boost.multiplier
    if hi <= lo:
        return lo
    r = rng.random() if rng is not None else 0.5
    return lo + r * (hi - lo)


def calculate_horse_performance(
    horse: Horse,
    race_distance: int,
    cfg: GameConfig = DEFAULT_CONFIG,
    rng: Optional[RNG] = None,
    boost: Optional[BoostDef] = None,
    race_number: Optional[int] = None,
    wallet: Optional[float] = None,
) -> float:
    speed_norm = (horse.speed - SPEED_MIDPOINT) / SPEED_HALF_RANGE
    speed_factor = 1.0 + speed_norm * cfg.speed_impact_scaling

    fit_norm = (calculate_distance_fit(horse, race_distance) - FIT_MIDPOINT) / FIT_HALF_RANGE
    distance_factor = 1.0 + fit_norm * cfg.distance_impact_scaling

    fatigue_factor = max(FATIGUE_FLOOR, 1.0 - horse.fatigue / 100.0)
    boost_factor = boost_multiplier(boost, rng)
    spec_factor = 1.0 + get_specialization_bonus(horse, cfg, race_number, wallet)

    return speed_factor * distance_factor * fatigue_factor * boost_factor * spec_factor


def best_speed(horses: Sequence[Horse], default: float) -> float:
    return max((h.speed for h in horses), default=default)


def generate_starting_stable(rng: RNG, cfg: GameConfig = DEFAULT_CONFIG) -> list[Horse]:
    """One player horse per race distance, preference within +/-400m of it."""
    stable = [
        generate_horse(rng, cfg, is_player=True, race_number=1,
                       distance_preference=d + rng.randint(-400, 400))
        for d in cfg.race_distances
    ]
    logger.debug("Starting stable: %s", ", ".join(f"{h.name} ({h.speed})" for h in stable))
    return stable
