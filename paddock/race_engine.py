from __future__ import annotations

"""Tick-based race simulation.

Each participant carries a precomputed base_performance plus three pieces of
in-race state that evolve every tick:
  - momentum: bounded multiplier with continuous random drift, nudged by phases
  - energy: depletes with effort, scales movement down as it falls
  - active_phase: a temporary trait-triggered bonus/penalty window

Public surface:
  - RaceEngine (one race, advanced with step())
  - simulate_race(...) (callback-driven loop with optional real-time pacing and cancellation)
  - run_race(...) (headless helper)
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, EARLY_PHASES, LATE_PHASES, MID_PHASES, BoostDef, GameConfig
from .horses import calculate_horse_performance
from .models import ActivePhase, Horse, PositionSnapshot, RaceOutcome, RaceParticipant
from .race_reporting import process_race_results
from .rng import RNG

logger = logging.getLogger(__name__)

Snapshot = Dict[str, PositionSnapshot]
# (phase name, trait that offered it or None, weight)
PhaseCandidate = Tuple[str, Optional[str], float]

BASE_PHASE_CHANCE = 0.02
TRAIT_CHANCE_DIVISOR = 50.0
INTERVAL_ESCALATION = 0.05
PROGRESS_ESCALATION = 0.8

EARLY_WINDOW, MID_WINDOW = 0.2, 0.7
EARLY_WEIGHT, MID_WEIGHT, LATE_WEIGHT = 2.0, 1.25, 2.0
GENERIC_STRUGGLE = "struggle"
GENERIC_STRUGGLE_P = 0.2

MOMENTUM_MIN, MOMENTUM_MAX = 0.4, 1.6
SURGE_MOMENTUM_CAP, SURGE_MOMENTUM_STEP = 1.5, 0.05
STRUGGLE_MOMENTUM_FLOOR, STRUGGLE_MOMENTUM_STEP = 0.3, 0.1
MOMENTUM_DRIFT = 0.06
MOVE_JITTER = 0.4
MIN_MOVE = 0.3
MIN_ENERGY_FACTOR = 0.3
ENERGY_FLOOR = 10.0

PODIUM = 3


class RaceCancelled(Exception):
    """Raised by simulate_race() when its cancel event is set mid-race."""


def init_participant(
    rng: RNG,
    horse: Horse,
    race_distance: int,
    cfg: GameConfig = DEFAULT_CONFIG,
    boost: Optional[BoostDef] = None,
    race_number: Optional[int] = None,
    wallet: Optional[float] = None,
) -> RaceParticipant:
    perf = calculate_horse_performance(horse, race_distance, cfg, rng, boost, race_number, wallet)
    return RaceParticipant(
        horse=horse,
        base_performance=perf,
        momentum=0.5 + rng.random() * cfg.momentum_variance,
        energy=80.0 + rng.random() * cfg.energy_variance,
        target_events=cfg.target_events,
    )


def phase_chance(p: RaceParticipant, cfg: GameConfig, race_progress: float) -> float:
    chance = BASE_PHASE_CHANCE
    for t in p.horse.traits:
        tdef = cfg.traits.get(t)
        if tdef is None:
            continue
        chance += tdef.phase_chance / TRAIT_CHANCE_DIVISOR
    # The longer without an event, and the later in the race, the likelier one fires.
    chance *= 1.0 + p.intervals_since_event * INTERVAL_ESCALATION
    chance *= 1.0 + race_progress * PROGRESS_ESCALATION
    return chance


def find_available_phases(p: RaceParticipant, cfg: GameConfig, race_progress: float) -> List[PhaseCandidate]:
    out: List[PhaseCandidate] = []
    for t in p.horse.traits:
        tdef = cfg.traits.get(t)
        if tdef is None:
            logger.warning("Unknown trait %r on %s; skipped", t, p.horse.name)
            continue
        for ph in tdef.phases:
            if race_progress < EARLY_WINDOW and ph in EARLY_PHASES:
                out.append((ph, t, EARLY_WEIGHT))
            elif race_progress < MID_WINDOW and ph in MID_PHASES:
                out.append((ph, t, MID_WEIGHT))
            elif race_progress >= MID_WINDOW and ph in LATE_PHASES:
                out.append((ph, t, LATE_WEIGHT))
    return out


def trigger_horse_phase(rng: RNG, p: RaceParticipant, cfg: GameConfig, tick: int, race_progress: float) -> Optional[ActivePhase]:
    p.intervals_since_event = 0
    p.event_count += 1

    candidates = find_available_phases(p, cfg, race_progress)
    # bad luck can hit any horse
    if rng.chance(GENERIC_STRUGGLE_P):
        candidates.append((GENERIC_STRUGGLE, None, 1.0))
    if not candidates:
        return None

    name, trait, _w = rng.weighted_choice(candidates, [c[2] for c in candidates])
    pdef = cfg.phases.get(name)
    if pdef is None:
        logger.warning("Unknown phase %r offered by trait %r; skipped", name, trait)
        return None

    tdef = cfg.traits.get(trait) if trait else None
    trait_mod = tdef.power_modifier if tdef else 1.0
    booster_mod = (1.0 + p.horse.booster_power / 100.0) / 2.0

    flat_bonus = pdef.base_bonus * trait_mod * booster_mod * cfg.event_power_scaling
    duration = int(round(pdef.base_duration * trait_mod))

    phase = ActivePhase(
        name=name,
        kind=pdef.kind,
        flat_bonus=flat_bonus,
        duration=duration,
        end_tick=tick + duration,
        trait=trait,
    )
    p.active_phase = phase
    logger.debug("t=%d %s: %s (%s) %+.3f for %d ticks", tick, p.horse.name, name, pdef.kind, flat_bonus, duration)
    return phase


def calculate_horse_movement(rng: RNG, p: RaceParticipant, cfg: GameConfig, tick: int) -> float:
    bonus = 0.0
    ph = p.active_phase
    if ph is not None and tick < ph.end_tick:
        bonus = ph.flat_bonus
        if ph.kind == "surge":
            p.momentum = min(SURGE_MOMENTUM_CAP, p.momentum + SURGE_MOMENTUM_STEP)
        elif ph.kind == "struggle":
            p.momentum = max(STRUGGLE_MOMENTUM_FLOOR, p.momentum - STRUGGLE_MOMENTUM_STEP)
    elif ph is not None:
        p.active_phase = None

    drift = (rng.random() - 0.5) * MOMENTUM_DRIFT
    p.momentum = max(MOMENTUM_MIN, min(MOMENTUM_MAX, p.momentum + drift))

    energy_factor = max(MIN_ENERGY_FACTOR, p.energy / 100.0)
    step = cfg.base_step_size * cfg.race_speed_multiplier
    core = step * p.base_performance * 2.0 * p.momentum * energy_factor

    jitter = (rng.random() - 0.5) * MOVE_JITTER
    return max(MIN_MOVE, core + bonus + jitter)


def update_horse_energy(p: RaceParticipant) -> None:
    bonus = p.active_phase.flat_bonus if p.active_phase is not None else 0.0
    effort = p.momentum + abs(bonus * 0.2)
    p.energy = max(ENERGY_FLOOR, p.energy - (0.8 + effort * 0.3))


def update_horse_racing(rng: RNG, p: RaceParticipant, cfg: GameConfig, tick: int, race_progress: float) -> None:
    p.intervals_since_event += 1

    can_trigger = p.active_phase is None and p.event_count < p.target_events
    if can_trigger and rng.random() < phase_chance(p, cfg, race_progress):
        trigger_horse_phase(rng, p, cfg, tick, race_progress)

    p.progress += calculate_horse_movement(rng, p, cfg, tick)
    update_horse_energy(p)


def finish_places(participants: Sequence[RaceParticipant]) -> Dict[str, int]:
    finished = [p for p in participants if p.has_finished]
    # sorted() is stable: simultaneous finishers keep field order
    finished.sort(key=lambda p: p.finish_time)  # type: ignore[arg-type, return-value]
    return {p.id: i + 1 for i, p in enumerate(finished)}


def create_position_update(participants: Sequence[RaceParticipant]) -> Snapshot:
    places = finish_places(participants)
    out: Snapshot = {}
    for p in participants:
        ph = p.active_phase
        out[p.id] = PositionSnapshot(
            progress=min(100.0, p.progress),
            phase_kind=ph.kind if ph else None,
            phase_name=ph.name if ph else None,
            finish_place=places.get(p.id),
            has_finished=p.has_finished,
        )
    return out


def check_race_end_conditions(participants: Sequence[RaceParticipant], tick: int, cfg: GameConfig = DEFAULT_CONFIG) -> bool:
    n_finished = sum(1 for p in participants if p.has_finished)
    if n_finished == len(participants):
        return True
    # Once the podium is decided, keep going only until the minimum race length.
    return n_finished >= min(PODIUM, len(participants)) and tick > cfg.min_ticks_before_podium_finish


class RaceEngine:
    """One race: a list of participants and a logical tick counter.

    The engine owns its participant list; nothing outside should mutate it
    while the race is running.
    """

    def __init__(
        self,
        rng: RNG,
        horses: Sequence[Horse],
        race_distance: int,
        cfg: GameConfig = DEFAULT_CONFIG,
        *,
        selected_horse_id: Optional[str] = None,
        boost: Optional[BoostDef] = None,
        race_number: Optional[int] = None,
        wallet: Optional[float] = None,
    ) -> None:
        self.rng = rng
        self.cfg = cfg
        self.race_distance = race_distance
        self.tick = 0
        self.participants: List[RaceParticipant] = [
            init_participant(
                rng, h, race_distance, cfg,
                boost=boost if h.id == selected_horse_id else None,
                race_number=race_number, wallet=wallet,
            )
            for h in horses
        ]
        self._over = not self.participants

    @property
    def race_progress(self) -> float:
        return min(1.0, self.tick / float(max(1, self.cfg.max_race_time)))

    def is_over(self) -> bool:
        return self._over

    def step(self) -> Snapshot:
        if self._over:
            return self.snapshot()
        self.tick += 1
        prog = self.race_progress
        for p in self.participants:
            if p.has_finished:
                continue
            update_horse_racing(self.rng, p, self.cfg, self.tick, prog)
            if p.progress >= 100.0:
                p.has_finished = True
                p.finish_time = self.tick
                logger.debug("t=%d %s finished", self.tick, p.horse.name)

        if check_race_end_conditions(self.participants, self.tick, self.cfg):
            self._over = True
        elif self.tick >= self.cfg.max_ticks:
            logger.warning("Race hit max_ticks=%d before finishing; stopping", self.cfg.max_ticks)
            self._over = True
        return self.snapshot()

    def snapshot(self) -> Snapshot:
        return create_position_update(self.participants)

    def results(self) -> List[RaceParticipant]:
        return process_race_results(self.participants)


def simulate_race(
    rng: RNG,
    horses: Sequence[Horse],
    selected_horse: Optional[Horse],
    boost: Optional[BoostDef],
    race_distance: int,
    on_tick: Callable[[Snapshot], None],
    on_finish: Callable[[List[RaceParticipant]], None],
    cfg: GameConfig = DEFAULT_CONFIG,
    *,
    race_number: Optional[int] = None,
    wallet: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    interval_s: Optional[float] = None,
    finish_delay_s: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RaceParticipant]:
    """Run a race to completion, reporting a snapshot every tick.

    interval_s / finish_delay_s default to the config's real-time pacing; pass 0
    for a headless run. on_finish receives the participants in field order,
    the same list that is returned.
    """
    if interval_s is None:
        interval_s = cfg.race_interval_ms / 1000.0
    if finish_delay_s is None:
        finish_delay_s = cfg.finish_delay_ms / 1000.0

    engine = RaceEngine(
        rng, horses, race_distance, cfg,
        selected_horse_id=selected_horse.id if selected_horse is not None else None,
        boost=boost, race_number=race_number, wallet=wallet,
    )
    logger.info("Race start: %d runners over %dm", len(engine.participants), race_distance)

    while not engine.is_over():
        if cancel is not None and cancel.is_set():
            logger.info("Race cancelled at tick %d", engine.tick)
            raise RaceCancelled(f"race cancelled at tick {engine.tick}")
        on_tick(engine.step())
        if interval_s > 0 and not engine.is_over():
            sleep(interval_s)

    logger.info("Race over after %d ticks", engine.tick)
    if finish_delay_s > 0:
        sleep(finish_delay_s)
    on_finish(engine.participants)
    return engine.participants


def run_race(
    rng: RNG,
    horses: Sequence[Horse],
    race_distance: int,
    cfg: GameConfig = DEFAULT_CONFIG,
    *,
    selected_horse: Optional[Horse] = None,
    boost: Optional[BoostDef] = None,
    race_number: Optional[int] = None,
    wallet: Optional[float] = None,
    keep_snapshots: bool = False,
) -> RaceOutcome:
    """Headless race: no pacing, no callbacks. Used by the session and tests."""
    engine = RaceEngine(
        rng, horses, race_distance, cfg,
        selected_horse_id=selected_horse.id if selected_horse is not None else None,
        boost=boost, race_number=race_number, wallet=wallet,
    )
    snaps: List[Snapshot] = []
    while not engine.is_over():
        s = engine.step()
        if keep_snapshots:
            snaps.append(s)
    return RaceOutcome(results=tuple(engine.results()), ticks=engine.tick, snapshots=tuple(snaps))
