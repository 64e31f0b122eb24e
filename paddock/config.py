from __future__ import annotations

"""Game tunables.

Everything the simulation reads lives on a frozen GameConfig instance that is
passed into each call. The trait/phase/boost catalogs are module-level
constants, referenced by the default config.

Balance knobs worth knowing about:
  - speed_impact_scaling / distance_impact_scaling cap how far raw stats can
    swing the per-race performance multiplier
  - event_power_scaling dampens every phase bonus
  - ai_speed_scaling / ai_player_relative control how fast the AI field keeps
    up with the player
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Literal, Mapping, Tuple

logger = logging.getLogger(__name__)

PhaseKind = Literal["surge", "steady", "struggle"]


@dataclass(frozen=True)
class TraitDef:
    name: str
    icon: str
    description: str
    phases: Tuple[str, ...]
    phase_chance: float
    power_modifier: float
    math_impact: str
    negative: bool = False


@dataclass(frozen=True)
class PhaseDef:
    base_bonus: float
    base_duration: int
    kind: PhaseKind


@dataclass(frozen=True)
class BoostDef:
    type: str
    name: str
    desc: str
    cost: int
    # (low, high) multiplier; low == high for fixed boosts
    multiplier: Tuple[float, float]


TRAITS: Dict[str, TraitDef] = {
    "earlySpeed": TraitDef("Early Speed", "⚡", "Quick out of the gate",
                           ("earlyBurst", "quickStart"), 0.45, 1.2,
                           "+20% speed boost in first 30% of race"),
    "closer": TraitDef("Closer", "🚀", "Strong finish",
                       ("finalKick", "desperateCharge"), 0.5, 1.3,
                       "+30% speed boost in final 30% of race"),
    "mudder": TraitDef("Mudder", "🌧️", "Thrives in tough conditions",
                       ("steadyPush", "grind"), 0.30, 1.1,
                       "+10% consistent speed"),
    "frontRunner": TraitDef("Front Runner", "🏃", "Likes to lead",
                            ("earlyBurst", "maintainLead"), 0.5, 1.15,
                            "+15% speed when in 1st place"),
    "versatile": TraitDef("Versatile", "🎯", "Adapts to any situation",
                          ("midRaceSurge", "steadyPush"), 0.25, 1.0,
                          "No distance penalty, adapts to all tracks"),
    "sprinter": TraitDef("Sprinter", "💨", "Explosive speed bursts",
                         ("sprint", "quickBurst"), 0.45, 1.4,
                         "+40% speed for 5 second bursts"),
    # negative
    "temperamental": TraitDef("Temperamental", "😤", "Unpredictable and moody",
                              ("tantrum", "struggle"), 0.30, 0.7,
                              "-30% speed during negative phases", negative=True),
    "lazy": TraitDef("Lazy", "😴", "Lacks drive and motivation",
                     ("slowStart", "fade"), 0.35, 0.8,
                     "-20% speed, more likely to fade late", negative=True),
    "nervous": TraitDef("Nervous", "😰", "Easily spooked and anxious",
                        ("panic", "stumble"), 0.25, 0.6,
                        "-40% speed when panicked", negative=True),
    "brittle": TraitDef("Brittle", "🤕", "Prone to fatigue and injury",
                        ("cramp", "slowdown"), 0.20, 0.5,
                        "Gains fatigue 50% faster", negative=True),
}

NEGATIVE_TRAITS: Tuple[str, ...] = tuple(k for k, t in TRAITS.items() if t.negative)

PHASES: Dict[str, PhaseDef] = {
    # surge
    "earlyBurst": PhaseDef(0.6, 8, "surge"),
    "quickStart": PhaseDef(0.5, 6, "surge"),
    "midRaceSurge": PhaseDef(0.4, 10, "surge"),
    "finalKick": PhaseDef(0.7, 12, "surge"),
    "desperateCharge": PhaseDef(0.8, 10, "surge"),
    "sprint": PhaseDef(0.9, 5, "surge"),
    "quickBurst": PhaseDef(0.7, 4, "surge"),
    "powerSurge": PhaseDef(1.0, 8, "surge"),
    "amplify": PhaseDef(0.6, 15, "surge"),
    # steady
    "steadyPush": PhaseDef(0.3, 15, "steady"),
    "grind": PhaseDef(0.25, 20, "steady"),
    "maintainLead": PhaseDef(0.35, 12, "steady"),
    # struggle
    "struggle": PhaseDef(-0.4, 8, "struggle"),
    "fade": PhaseDef(-0.3, 10, "struggle"),
    "tantrum": PhaseDef(-0.5, 6, "struggle"),
    "slowStart": PhaseDef(-0.4, 12, "struggle"),
    "panic": PhaseDef(-0.6, 8, "struggle"),
    "stumble": PhaseDef(-0.3, 4, "struggle"),
    "cramp": PhaseDef(-0.7, 10, "struggle"),
    "slowdown": PhaseDef(-0.2, 15, "struggle"),
}

# Race-progress windows in which a trait phase may fire: (upper bound, phases, weight).
# A phase listed in more than one window (sprint) is eligible in each of them.
EARLY_PHASES: Tuple[str, ...] = ("earlyBurst", "quickStart")
MID_PHASES: Tuple[str, ...] = ("midRaceSurge", "steadyPush", "grind", "sprint")
LATE_PHASES: Tuple[str, ...] = ("finalKick", "desperateCharge", "sprint")

BOOSTS: Dict[str, BoostDef] = {
    "energy": BoostDef("energy", "Energy Drink", "+30% performance this race", 25, (1.3, 1.3)),
    "focus": BoostDef("focus", "Focus Training", "+20% performance this race", 15, (1.2, 1.2)),
    "luck": BoostDef("luck", "Lucky Charm", "+10-40% random performance boost", 10, (1.1, 1.4)),
}

SPECIALIZATION_LEVELS: Tuple[str, ...] = ("Rookie", "Rookie+", "Champion", "Master", "Legend")


@dataclass(frozen=True)
class GameConfig:
    # economy
    initial_wallet: int = 100
    win_condition: int = 1000
    base_entry_fee: int = 10
    min_entry_multiplier: float = 1.25
    max_entry_fee: int = 200
    breed_cost: int = 0

    # horses
    base_speed: int = 45
    speed_range: int = 15
    fatigue_per_race: int = 20
    player_trait_chance: float = 0.3
    first_race_stat_bonus: int = 3

    # AI calibration
    ai_horses_count: int = 7
    ai_base_speed_bonus: int = 0
    ai_speed_scaling: float = 4
    ai_player_relative: float = 0.3
    ai_speed_variability: int = 5
    ai_trait_chance: float = 0.3
    ai_min_speed: int = 30
    ai_max_speed: int = 105

    # performance impact
    speed_impact_scaling: float = 0.3
    distance_impact_scaling: float = 0.4
    event_power_scaling: float = 0.8
    momentum_variance: float = 0.2
    energy_variance: float = 30

    # race loop
    max_race_time: int = 50
    race_interval_ms: int = 100
    finish_delay_ms: int = 1000
    race_speed_multiplier: float = 0.7
    base_step_size: float = 2.5
    min_ticks_before_podium_finish: int = 35
    max_ticks: int = 1000
    target_events: int = 4
    race_distances: Tuple[int, ...] = (1000, 1800, 2400)

    # breeding
    breeding_bonus: float = 1.05
    comeback_breeding_bonus: float = 1.10

    # specialization: win thresholds and performance bonuses
    champion_wins: int = 1
    master_wins: int = 3
    legend_wins: int = 6
    champion_bonus: float = 0.05
    comeback_champion_bonus: float = 0.08
    master_bonus: float = 0.08
    legend_bonus: float = 0.12

    traits: Mapping[str, TraitDef] = field(default_factory=lambda: dict(TRAITS))
    phases: Mapping[str, PhaseDef] = field(default_factory=lambda: dict(PHASES))
    boosts: Mapping[str, BoostDef] = field(default_factory=lambda: dict(BOOSTS))

    def with_overrides(self, **kw) -> "GameConfig":
        return replace(self, **kw)


DEFAULT_CONFIG = GameConfig()

_CATALOG_KEYS = {"traits", "phases", "boosts"}


def config_from_dict(data: Mapping[str, object], base: GameConfig = DEFAULT_CONFIG) -> GameConfig:
    """Build a config from a flat mapping of scalar overrides.

    Catalogs (traits/phases/boosts) are not overridable from plain data.
    """
    known = {f.name for f in fields(GameConfig)} - _CATALOG_KEYS
    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")
    kw = dict(data)
    if "race_distances" in kw:
        kw["race_distances"] = tuple(int(d) for d in kw["race_distances"])  # type: ignore[union-attr]
    return replace(base, **kw)


def load_config(path: Path | str, base: GameConfig = DEFAULT_CONFIG) -> GameConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    data = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a JSON object: {path}")
    cfg = config_from_dict(data, base)
    logger.info("Loaded %d config overrides from %s", len(data), p)
    return cfg
