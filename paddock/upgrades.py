from __future__ import annotations

"""Between-race upgrades.

Every apply_* function is a pure transform returning new Horse values.
Inapplicable upgrades (full trait slots, nothing to remove, unknown type)
return the input unchanged; whether an upgrade *should* be offered or
applied is decided separately by can_apply_upgrade().
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, NEGATIVE_TRAITS, GameConfig
from .economy import calculate_comeback_bonus
from .models import Horse, Upgrade
from .rng import RNG

logger = logging.getLogger(__name__)

UPGRADE_SPEED_CAP = 100
MAX_TRAITS = 3
OPTIONS_SHOWN = 3
MIRACLE_SPEED = 15

# Offered first whenever the comeback bonus is active.
STRONG_UPGRADES = frozenset({
    "speed", "veteran", "miracleHorse", "newTrait", "addSprinter",
    "addCloser", "addVersatile", "removeBadTrait", "stableRest",
})

STABLE_WIDE = frozenset({"stableSpeed", "stableRest"})


@dataclass(frozen=True)
class ComebackInfo:
    is_active: bool
    level: str
    message: str


def _scaled(base: int, bonus: float) -> int:
    return int(math.floor(base * bonus))


def build_upgrade_pool(bonus: float, player_horse_count: int) -> List[Upgrade]:
    speed = _scaled(8, bonus)
    veteran = _scaled(3, bonus)
    stable = _scaled(2, bonus)

    pool = [
        Upgrade("speed", "Speed Training", f"+{speed} Speed to selected horse", requires_horse_pick=True, value=speed),
        Upgrade("recovery", "Rest Day", "Remove all fatigue from selected horse", requires_horse_pick=True),
        Upgrade("veteran", "Veteran Bonus", f"+{veteran} to all stats for selected horse", requires_horse_pick=True, value=veteran),
        Upgrade("stableSpeed", "Better Training", f"+{stable} Speed to all horses", value=stable),
        Upgrade("newTrait", "Trait Training", "Add a random trait to selected horse", requires_horse_pick=True),
        Upgrade("buyHorse", "Buy New Horse", "Choose from 3 specialized horses"),
    ]
    if player_horse_count >= 2:
        pool.append(Upgrade("breed", "Breed Horses", "Combine two horses to create offspring"))
    if bonus >= 3:
        pool.append(Upgrade("miracleHorse", "Miracle Training", f"+{MIRACLE_SPEED} Speed to selected horse",
                            requires_horse_pick=True, value=MIRACLE_SPEED))
    pool += [
        Upgrade("addSprinter", "Sprint Training", "Add Sprinter trait to selected horse",
                requires_horse_pick=True, trait_to_add="sprinter"),
        Upgrade("addCloser", "Endurance Training", "Add Closer trait to selected horse",
                requires_horse_pick=True, trait_to_add="closer"),
        Upgrade("addVersatile", "Versatility Training", "Add Versatile trait to selected horse",
                requires_horse_pick=True, trait_to_add="versatile"),
        Upgrade("stableRest", "Spa Day", "Remove all fatigue from entire stable"),
        Upgrade("removeBadTrait", "Behavioral Training", "Remove a negative trait from selected horse",
                requires_horse_pick=True),
        Upgrade("optimizeDistance", "Distance Optimization", "Optimize selected horse for current race distance",
                requires_horse_pick=True),
    ]
    return pool


def select_upgrade_options(rng: RNG, pool: Sequence[Upgrade], bonus: float) -> List[Upgrade]:
    if not pool:
        return []
    if bonus <= 1:
        return rng.shuffled(pool)[:OPTIONS_SHOWN]

    strong = [u for u in pool if u.type in STRONG_UPGRADES and u.cost == 0]
    others = [u for u in pool if u not in strong]
    picked: List[Upgrade] = []
    if strong:
        picked.append(rng.choice(strong))
    picked += rng.shuffled(others)[:OPTIONS_SHOWN - 1]

    out: List[Upgrade] = []
    seen = set()
    for u in picked:
        if u.type not in seen:
            out.append(u)
            seen.add(u.type)
    return out[:OPTIONS_SHOWN]


def generate_upgrade_options(
    rng: RNG,
    cfg: GameConfig,
    race_number: int,
    wallet: float,
    player_horse_count: int,
) -> List[Upgrade]:
    bonus = calculate_comeback_bonus(race_number, wallet, cfg)
    options = select_upgrade_options(rng, build_upgrade_pool(bonus, player_horse_count), bonus)
    logger.debug("Upgrade options (bonus %.1f): %s", bonus, [u.type for u in options])
    return options


def _add_speed(horse: Horse, amount: int) -> Horse:
    return replace(horse, speed=min(UPGRADE_SPEED_CAP, horse.speed + amount))


def apply_upgrade_to_horse(
    rng: RNG,
    upgrade: Upgrade,
    horse: Horse,
    all_horses: Sequence[Horse] = (),
    race_distance: int = 1800,
    cfg: GameConfig = DEFAULT_CONFIG,
) -> Horse:
    t = upgrade.type
    if t in ("speed", "veteran"):
        out = _add_speed(horse, upgrade.value or 0)
    elif t == "miracleHorse":
        out = _add_speed(horse, MIRACLE_SPEED)
    elif t == "recovery":
        out = replace(horse, fatigue=0)
    elif t == "newTrait":
        fresh = [k for k in cfg.traits if k not in horse.traits]
        if len(horse.traits) < MAX_TRAITS and fresh:
            out = replace(horse, traits=horse.traits + (rng.choice(fresh),))
        else:
            out = horse
    elif t in ("addSprinter", "addCloser", "addVersatile"):
        trait = upgrade.trait_to_add
        if trait and len(horse.traits) < MAX_TRAITS and trait not in horse.traits:
            out = replace(horse, traits=horse.traits + (trait,))
        else:
            out = horse
    elif t == "removeBadTrait":
        bad = [k for k in horse.traits if k in NEGATIVE_TRAITS]
        if bad:
            drop = rng.choice(bad)
            out = replace(horse, traits=tuple(k for k in horse.traits if k != drop))
        else:
            out = horse
    elif t == "optimizeDistance":
        out = replace(horse, distance_preference=int(race_distance))
    else:
        out = horse

    if out is not horse:
        logger.debug("Applied %s to %s", t, horse.name)
    return out


def apply_upgrade_to_all_horses(upgrade: Upgrade, horses: Sequence[Horse]) -> List[Horse]:
    if upgrade.type == "stableSpeed":
        return [_add_speed(h, upgrade.value or 0) for h in horses]
    if upgrade.type == "stableRest":
        return [replace(h, fatigue=0) for h in horses]
    return list(horses)


def can_apply_upgrade(upgrade: Upgrade, wallet: float, player_horse_count: int) -> Tuple[bool, Optional[str]]:
    if upgrade.cost > wallet:
        return False, "Not enough money"
    if upgrade.type == "breed" and player_horse_count < 2:
        return False, "Need at least 2 horses to breed"
    return True, None


def get_comeback_info(race_number: int, wallet: float, cfg: GameConfig = DEFAULT_CONFIG) -> ComebackInfo:
    bonus = calculate_comeback_bonus(race_number, wallet, cfg)
    if bonus >= 3:
        return ComebackInfo(True, "Maximum", "MAXIMUM Comeback Bonus Active! Triple upgrade values!")
    if bonus >= 2:
        return ComebackInfo(True, "Strong", "Strong Comeback Bonus Active! Double upgrade values!")
    if bonus > 1:
        return ComebackInfo(True, "Minor", "Comeback Bonus Active! Enhanced upgrade values!")
    return ComebackInfo(False, "None", "")
