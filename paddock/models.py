from __future__ import annotations
import itertools
from dataclasses import dataclass, field, replace
from typing import Dict, Literal, Optional, Tuple

from .config import PhaseKind

SpecializationLevel = Literal["Rookie", "Rookie+", "Champion", "Master", "Legend"]
Origin = Literal["PLY", "CPU", "BRD"]

_ID_COUNTER = itertools.count(1)


def next_horse_id(origin: Origin) -> str:
    # Process-wide counter: ids never repeat within a session.
    return f"{origin}-{next(_ID_COUNTER):06d}"


@dataclass(frozen=True)
class Horse:
    id: str
    name: str
    speed: int
    booster_power: int
    distance_preference: int
    color: int
    is_player: bool
    traits: Tuple[str, ...]
    fatigue: int = 0

    # specialization track
    total_races: int = 0
    total_wins: int = 0
    total_seconds: int = 0
    specialization_level: SpecializationLevel = "Rookie"

    parents: Optional[Tuple[str, str]] = None
    # display-only: horse joined the stable since the last race
    is_new: bool = False


def clear_new_flag(horse: Horse) -> Horse:
    return replace(horse, is_new=False) if horse.is_new else horse


@dataclass(frozen=True)
class ActivePhase:
    name: str
    kind: PhaseKind
    flat_bonus: float
    duration: int
    end_tick: int
    trait: Optional[str] = None


@dataclass
class RaceParticipant:
    horse: Horse
    base_performance: float
    momentum: float
    energy: float
    progress: float = 0.0
    intervals_since_event: int = 0
    event_count: int = 0
    target_events: int = 4
    active_phase: Optional[ActivePhase] = None
    finish_time: Optional[int] = None
    has_finished: bool = False

    @property
    def id(self) -> str:
        return self.horse.id


@dataclass(frozen=True)
class PositionSnapshot:
    progress: float
    phase_kind: Optional[PhaseKind]
    phase_name: Optional[str]
    finish_place: Optional[int]
    has_finished: bool


@dataclass(frozen=True)
class Upgrade:
    type: str
    name: str
    desc: str
    cost: int = 0
    requires_horse_pick: bool = False
    value: Optional[int] = None
    trait_to_add: Optional[str] = None


@dataclass(frozen=True)
class EntryFee:
    amount: int
    multiplier: int
    label: str


@dataclass(frozen=True)
class PrizePool:
    first: int
    second: int
    third: int

    def as_list(self) -> Tuple[int, int, int]:
        return (self.first, self.second, self.third)

    @property
    def total(self) -> int:
        return self.first + self.second + self.third


@dataclass(frozen=True)
class PlayerResult:
    position: int  # 0-based
    winnings: int
    placed: bool


@dataclass(frozen=True)
class ScoutReport:
    horse_id: str
    notes: Tuple[str, ...]
    speed_visible: bool
    traits_visible: bool
    distance_visible: bool
    estimated_speed: Optional[int] = None


@dataclass(frozen=True)
class RaceOutcome:
    results: Tuple[RaceParticipant, ...]
    ticks: int
    snapshots: Tuple[Dict[str, PositionSnapshot], ...] = field(default_factory=tuple)
