from __future__ import annotations

"""Pre-race intel on the AI field.

Which attributes a scout "sees" for a horse is a deterministic draw keyed
by (seed, horse id, attribute), so re-rendering a report for the same race
never flips what is visible. The free-text notes draw from the caller's RNG.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, GameConfig
from .horses import best_speed, calculate_distance_fit
from .models import Horse, ScoutReport
from .rng import RNG, hash64

DEFAULT_BEST_SPEED = 50
SPEED_REVEAL_CHANCE = 0.3
TRAIT_REPORT_CHANCE = 0.5
DANGEROUS_TRAITS = ("sprinter", "closer", "earlySpeed")

# Minimum draw for the attribute to be visible.
VISIBILITY_THRESHOLDS = {"speed": 0.4, "traits": 0.3, "distance": 0.5}

REPUTATION_LEVELS = (
    (140, "Elite"),
    (120, "Strong"),
    (100, "Rising"),
    (80, "Average"),
)

EXPERTISE_LEVELS = (
    (0.95, "Master"),
    (0.85, "Expert"),
    (0.70, "Skilled"),
    (0.55, "Decent"),
    (0.40, "Learning"),
)


@dataclass(frozen=True)
class Reputation:
    level: str


@dataclass(frozen=True)
class DetailedAnalysis:
    speed_rating: int
    distance_fit: float
    trait_count: int
    estimated_win_chance: int
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]


def _attr_rng(seed: int, horse_id: str, attr: str) -> RNG:
    return RNG(hash64(seed, horse_id, attr))


def is_attribute_visible(seed: int, horse_id: str, attr: str) -> bool:
    return _attr_rng(seed, horse_id, attr).random() > VISIBILITY_THRESHOLDS[attr]


def estimate_speed(seed: int, horse: Horse) -> int:
    digit = _attr_rng(seed, horse.id, "estimate").randint(0, 9)
    return int(math.floor(horse.speed * 0.9 + digit))


def _speed_notes(rng: RNG, horse: Horse, best: float) -> List[str]:
    if horse.speed > best + 10:
        return ["Much faster than your best"]
    if horse.speed > best + 5:
        return ["Faster than your best"]
    if horse.speed > best:
        return ["Slightly faster than your best"]
    if rng.chance(SPEED_REVEAL_CHANCE):
        return [f"Speed: {horse.speed}"]
    return []


def _distance_notes(horse: Horse, race_distance: int) -> List[str]:
    fit = calculate_distance_fit(horse, race_distance)
    if fit > 0.8:
        return ["Perfect for distance"]
    if fit < 0.5:
        return ["Poor distance fit"]
    if fit < 0.6:
        return ["Suboptimal distance"]
    return []


def _trait_notes(rng: RNG, horse: Horse, cfg: GameConfig) -> List[str]:
    notes = []
    for key in horse.traits:
        if key in DANGEROUS_TRAITS and key in cfg.traits and rng.chance(TRAIT_REPORT_CHANCE):
            notes.append(f"Strong {cfg.traits[key].name}")
    if "closer" in horse.traits and "sprinter" in horse.traits:
        notes.append("Dangerous finisher!")
    if "earlySpeed" in horse.traits and "frontRunner" in horse.traits:
        notes.append("Will lead early")
    return notes


def _threat_notes(horse: Horse, best: float) -> List[str]:
    ratio = horse.speed / best if best > 0 else 1.0
    if ratio > 1.4:
        return ["⚠️ MAJOR THREAT"]
    if ratio > 1.2:
        return ["⚠️ Strong contender"]
    if ratio < 0.75:
        return ["Weak opposition"]
    return []


def scout_horse(
    rng: RNG,
    horse: Horse,
    best: float,
    race_distance: int,
    seed: int,
    cfg: GameConfig = DEFAULT_CONFIG,
) -> ScoutReport:
    notes = (
        _speed_notes(rng, horse, best)
        + _distance_notes(horse, race_distance)
        + _trait_notes(rng, horse, cfg)
        + _threat_notes(horse, best)
    )
    speed_visible = is_attribute_visible(seed, horse.id, "speed")
    return ScoutReport(
        horse_id=horse.id,
        notes=tuple(notes),
        speed_visible=speed_visible,
        traits_visible=is_attribute_visible(seed, horse.id, "traits"),
        distance_visible=is_attribute_visible(seed, horse.id, "distance"),
        estimated_speed=None if speed_visible else estimate_speed(seed, horse),
    )


def generate_scout_reports(
    rng: RNG,
    ai_horses: Sequence[Horse],
    player_horses: Sequence[Horse],
    race_distance: int,
    seed: int,
    cfg: GameConfig = DEFAULT_CONFIG,
) -> Dict[str, ScoutReport]:
    best = best_speed(player_horses, default=DEFAULT_BEST_SPEED)
    return {h.id: scout_horse(rng, h, best, race_distance, seed, cfg) for h in ai_horses}


def calculate_horse_reputation(horse: Horse) -> Reputation:
    for floor, level in REPUTATION_LEVELS:
        if horse.speed > floor:
            return Reputation(level)
    return Reputation("Weak")


def calculate_win_chance(horse: Horse, race_distance: int) -> int:
    """Rough percentage; a display hint, not a model of the race engine."""
    speed_factor = horse.speed / 100
    distance_factor = calculate_distance_fit(horse, race_distance)
    trait_factor = min(1.2, 1 + len(horse.traits) * 0.1)
    return int(round(speed_factor * distance_factor * trait_factor * 100))


def identify_strengths(horse: Horse) -> Tuple[str, ...]:
    out = []
    if horse.speed > 70:
        out.append("High Speed")
    if len(horse.traits) > 1:
        out.append("Multi-Talented")
    return tuple(out)


def identify_weaknesses(horse: Horse) -> Tuple[str, ...]:
    out = []
    if horse.speed < 50:
        out.append("Low Speed")
    if not horse.traits:
        out.append("No Special Traits")
    return tuple(out)


def generate_detailed_analysis(horse: Horse, race_distance: int) -> DetailedAnalysis:
    return DetailedAnalysis(
        speed_rating=horse.speed,
        distance_fit=calculate_distance_fit(horse, race_distance),
        trait_count=len(horse.traits),
        estimated_win_chance=calculate_win_chance(horse, race_distance),
        strengths=identify_strengths(horse),
        weaknesses=identify_weaknesses(horse),
    )


def get_distance_expertise(fit: float) -> str:
    for floor, label in EXPERTISE_LEVELS:
        if fit >= floor:
            return label
    return "Rookie"


def get_best_distance(horse: Horse, distances: Sequence[int]) -> Optional[int]:
    if not distances:
        return None
    # max() keeps the first of equal fits
    return max(distances, key=lambda d: calculate_distance_fit(horse, d))
