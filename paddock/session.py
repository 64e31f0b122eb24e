from __future__ import annotations

"""One player's run: wallet, stable, race counter and phase machine.

The stable and AI field are tuples of frozen Horse values; every change
swaps in a new tuple, so a caller holding an old reference never sees a
half-applied update.

Phase flow:
    horseSelection -> racing -> postRace -> (horsePicker | horseBuying | breeding)
    -> horseSelection (next race)
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .breeding import breed_horses
from .config import DEFAULT_CONFIG, GameConfig
from .cpu_pool import generate_ai_field, generate_horse_buying_options, purchase_horse
from .economy import calculate_entry_fees, calculate_prize_pool, process_player_winnings
from .horses import generate_starting_stable
from .models import EntryFee, Horse, PlayerResult, PrizePool, RaceOutcome, ScoutReport, Upgrade, clear_new_flag
from .progression import apply_race_fatigue, update_horse_specialization
from .race_engine import run_race
from .rng import RNG, hash64
from .scouting import generate_scout_reports
from .upgrades import (
    STABLE_WIDE,
    apply_upgrade_to_all_horses,
    apply_upgrade_to_horse,
    can_apply_upgrade,
    generate_upgrade_options,
)

logger = logging.getLogger(__name__)

HORSE_SELECTION = "horseSelection"
RACING = "racing"
POST_RACE = "postRace"
HORSE_PICKER = "horsePicker"
BREEDING = "breeding"
HORSE_BUYING = "horseBuying"


class GameError(RuntimeError):
    """A session call made in the wrong phase or with arguments the game cannot accept."""


@dataclass
class GameSession:
    seed: int = 0
    cfg: GameConfig = DEFAULT_CONFIG

    rng: RNG = field(init=False)
    phase: str = field(init=False, default=HORSE_SELECTION)
    wallet: int = field(init=False, default=0)
    race_number: int = field(init=False, default=1)
    distance_index: int = field(init=False, default=0)

    player_horses: Tuple[Horse, ...] = field(init=False, default=())
    ai_horses: Tuple[Horse, ...] = field(init=False, default=())
    scout_reports: Dict[str, ScoutReport] = field(init=False, default_factory=dict)

    upgrade_options: Tuple[Upgrade, ...] = field(init=False, default=())
    pending_upgrade: Optional[Upgrade] = field(init=False, default=None)
    buying_options: Tuple[Horse, ...] = field(init=False, default=())

    last_outcome: Optional[RaceOutcome] = field(init=False, default=None)
    last_result: Optional[PlayerResult] = field(init=False, default=None)
    last_prize_pool: Optional[PrizePool] = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.new_game()

    # --- state ---

    @property
    def race_distance(self) -> int:
        return self.cfg.race_distances[self.distance_index % len(self.cfg.race_distances)]

    def find_horse(self, horse_id: str) -> Horse:
        for h in self.player_horses:
            if h.id == horse_id:
                return h
        raise GameError(f"No horse {horse_id!r} in the stable")

    def _replace_horse(self, horse: Horse) -> None:
        self.player_horses = tuple(horse if h.id == horse.id else h for h in self.player_horses)

    def _require(self, *phases: str) -> None:
        if self.phase not in phases:
            raise GameError(f"Not allowed during {self.phase} (expected {' or '.join(phases)})")

    def entry_fees(self) -> List[EntryFee]:
        return calculate_entry_fees(self.race_number, self.wallet, self.cfg)

    def has_won(self) -> bool:
        return self.wallet >= self.cfg.win_condition

    def has_lost(self) -> bool:
        if self.phase not in (HORSE_SELECTION, POST_RACE):
            return False
        return not self.entry_fees()

    # --- flow ---

    def new_game(self) -> None:
        self.rng = RNG(self.seed)
        self.wallet = self.cfg.initial_wallet
        self.race_number = 1
        self.distance_index = 0
        self.player_horses = tuple(generate_starting_stable(self.rng, self.cfg))
        self.upgrade_options = ()
        self.pending_upgrade = None
        self.buying_options = ()
        self.last_outcome = None
        self.last_result = None
        self.last_prize_pool = None
        self._prepare_race()
        self.phase = HORSE_SELECTION
        logger.info("New game (seed %s): wallet $%d, %d horses", self.seed, self.wallet, len(self.player_horses))

    def _prepare_race(self) -> None:
        self.ai_horses = tuple(generate_ai_field(self.rng, self.race_number, self.player_horses, self.cfg))
        scout_seed = hash64(self.seed, self.race_number)
        self.scout_reports = generate_scout_reports(
            self.rng, self.ai_horses, self.player_horses, self.race_distance, scout_seed, self.cfg
        )

    def start_race(self, horse_id: str, fee: EntryFee, boost: Optional[str] = None) -> PlayerResult:
        self._require(HORSE_SELECTION)
        horse = self.find_horse(horse_id)
        if fee.amount <= 0 or fee.amount > self.wallet:
            raise GameError(f"Entry fee ${fee.amount} is not affordable with ${self.wallet}")
        if fee.amount not in {f.amount for f in self.entry_fees()}:
            raise GameError(f"Entry fee ${fee.amount} is not offered for race {self.race_number}")

        boost_def = None
        if boost is not None:
            boost_def = self.cfg.boosts.get(boost)
            if boost_def is None:
                logger.warning("Unknown boost %r ignored", boost)
            elif fee.amount + boost_def.cost > self.wallet:
                raise GameError(f"Cannot afford {boost_def.name} on top of the entry fee")

        cost = fee.amount + (boost_def.cost if boost_def is not None else 0)
        self.wallet -= cost
        self.phase = RACING
        # the horse races as it was selected; fatigue is charged to the stable copy
        self.player_horses = tuple(clear_new_flag(h) for h in self.player_horses)
        self._replace_horse(apply_race_fatigue(self.find_horse(horse_id), self.cfg))
        logger.info("Race %d (%dm): %s entered for $%d", self.race_number, self.race_distance, horse.name, cost)

        outcome = run_race(
            self.rng, (horse,) + self.ai_horses, self.race_distance, self.cfg,
            selected_horse=horse, boost=boost_def, race_number=self.race_number, wallet=self.wallet,
        )
        prize_pool = calculate_prize_pool(fee, self.cfg)
        result = process_player_winnings(outcome.results, horse, prize_pool)
        self.wallet += result.winnings
        self._replace_horse(
            update_horse_specialization(self.find_horse(horse_id), self.race_distance, result.position, self.cfg)
        )

        self.last_outcome = outcome
        self.last_result = result
        self.last_prize_pool = prize_pool
        self.upgrade_options = tuple(
            generate_upgrade_options(self.rng, self.cfg, self.race_number, self.wallet, len(self.player_horses))
        )
        self.phase = POST_RACE
        logger.info(
            "Race %d finished in %d ticks: %s placed %d, won $%d (wallet $%d)",
            self.race_number, outcome.ticks, horse.name, result.position + 1, result.winnings, self.wallet,
        )
        return result

    def choose_upgrade(self, upgrade: Upgrade) -> None:
        self._require(POST_RACE)
        if upgrade not in self.upgrade_options:
            raise GameError(f"Upgrade {upgrade.type!r} was not offered")
        ok, reason = can_apply_upgrade(upgrade, self.wallet, len(self.player_horses))
        if not ok:
            raise GameError(reason or "Upgrade cannot be applied")
        self.wallet -= upgrade.cost

        if upgrade.requires_horse_pick:
            self.pending_upgrade = upgrade
            self.phase = HORSE_PICKER
            return
        if upgrade.type in STABLE_WIDE:
            self.player_horses = tuple(apply_upgrade_to_all_horses(upgrade, self.player_horses))
        elif upgrade.type == "buyHorse":
            self.buying_options = tuple(generate_horse_buying_options(self.rng, self.player_horses, self.cfg))
            self.phase = HORSE_BUYING
            return
        elif upgrade.type == "breed":
            self.phase = BREEDING
            return
        self._advance()

    def apply_pending_upgrade(self, horse_id: str) -> Horse:
        self._require(HORSE_PICKER)
        if self.pending_upgrade is None:
            raise GameError("No upgrade waiting for a horse")
        horse = apply_upgrade_to_horse(
            self.rng, self.pending_upgrade, self.find_horse(horse_id), self.player_horses,
            self._next_distance(), self.cfg,
        )
        self._replace_horse(horse)
        self.pending_upgrade = None
        self._advance()
        return horse

    def buy_horse(self, index: int) -> Horse:
        self._require(HORSE_BUYING)
        if not 0 <= index < len(self.buying_options):
            raise GameError(f"No horse for sale at position {index}")
        horse = purchase_horse(self.buying_options[index])
        self.player_horses = self.player_horses + (horse,)
        self.buying_options = ()
        logger.info("Bought %s (speed %d)", horse.name, horse.speed)
        self._advance()
        return horse

    def breed(self, parent1_id: str, parent2_id: str) -> Horse:
        self._require(BREEDING)
        if parent1_id == parent2_id:
            raise GameError("Breeding needs two different horses")
        if self.cfg.breed_cost > self.wallet:
            raise GameError("Not enough money")
        p1, p2 = self.find_horse(parent1_id), self.find_horse(parent2_id)
        self.wallet -= self.cfg.breed_cost
        foal = breed_horses(self.rng, p1, p2, self.cfg, race_number=self.race_number, wallet=self.wallet)
        self.player_horses = self.player_horses + (foal,)
        logger.info("Bred %s from %s x %s", foal.name, p1.name, p2.name)
        self._advance()
        return foal

    def proceed_to_next_race(self) -> None:
        """Skip the remaining post-race choices."""
        self._require(POST_RACE, HORSE_PICKER, HORSE_BUYING, BREEDING)
        self._advance()

    def _next_distance(self) -> int:
        ds = self.cfg.race_distances
        return ds[(self.distance_index + 1) % len(ds)]

    def _advance(self) -> None:
        self.race_number += 1
        self.distance_index = (self.distance_index + 1) % len(self.cfg.race_distances)
        self.upgrade_options = ()
        self.pending_upgrade = None
        self.buying_options = ()
        self._prepare_race()
        self.phase = HORSE_SELECTION
        logger.info("Race %d next: %dm, wallet $%d", self.race_number, self.race_distance, self.wallet)

    def select_best_horse(self, horses: Optional[Sequence[Horse]] = None) -> Horse:
        """Freshest horse with the closest distance preference; speed breaks ties."""
        pool = list(horses if horses is not None else self.player_horses)
        if not pool:
            raise GameError("The stable is empty")
        d = self.race_distance
        return min(pool, key=lambda h: (h.fatigue >= 80, abs(h.distance_preference - d), -h.speed))
