from __future__ import annotations
import logging
from dataclasses import replace
from typing import Optional

from .breeding import clamp_int
from .config import DEFAULT_CONFIG, GameConfig
from .economy import comeback_active
from .models import Horse, SpecializationLevel

logger = logging.getLogger(__name__)

BRITTLE_FATIGUE_MULT = 1.5

def specialization_level_for(total_wins: int, total_seconds: int, cfg: GameConfig = DEFAULT_CONFIG) -> SpecializationLevel:
    # Pure function of the counters, so the level can never regress.
    if total_wins >= cfg.legend_wins:
        return "Legend"
    if total_wins >= cfg.master_wins:
        return "Master"
    if total_wins >= cfg.champion_wins:
        return "Champion"
    if total_wins + 0.5 * total_seconds >= 0.5:
        return "Rookie+"
    return "Rookie"

def update_horse_specialization(horse: Horse, race_distance: int, finish_position: int, cfg: GameConfig = DEFAULT_CONFIG) -> Horse:
    wins = horse.total_wins + (1 if finish_position == 0 else 0)
    seconds = horse.total_seconds + (1 if finish_position == 1 else 0)
    level = specialization_level_for(wins, seconds, cfg)
    if level != horse.specialization_level:
        logger.debug("%s promoted %s -> %s after %dm race", horse.name, horse.specialization_level, level, race_distance)
    return replace(
        horse,
        total_races=horse.total_races + 1,
        total_wins=wins,
        total_seconds=seconds,
        specialization_level=level,
    )

def get_specialization_bonus(
    horse: Horse,
    cfg: GameConfig = DEFAULT_CONFIG,
    race_number: Optional[int] = None,
    wallet: Optional[float] = None,
) -> float:
    lvl = horse.specialization_level
    if lvl == "Legend":
        return cfg.legend_bonus
    if lvl == "Master":
        return cfg.master_bonus
    if lvl == "Champion":
        if comeback_active(race_number, wallet, cfg):
            return cfg.comeback_champion_bonus
        return cfg.champion_bonus
    return 0.0

def apply_race_fatigue(horse: Horse, cfg: GameConfig = DEFAULT_CONFIG) -> Horse:
    gain = cfg.fatigue_per_race
    if "brittle" in horse.traits:
        gain = int(round(gain * BRITTLE_FATIGUE_MULT))
    return replace(horse, fatigue=clamp_int(horse.fatigue + gain, 0, 100))
