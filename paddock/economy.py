from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence

from .config import DEFAULT_CONFIG, GameConfig
from .models import EntryFee, Horse, PlayerResult, PrizePool, RaceParticipant

logger = logging.getLogger(__name__)

# percent of the pool paid to 1st/2nd/3rd
PRIZE_SPLIT = (70, 20, 10)

# (affordability ratio upper bound, multiplier), checked in order
COMEBACK_TIERS = ((1.2, 3.0), (2.0, 2.0), (4.0, 1.5))

def min_entry_fee(race_number: int, cfg: GameConfig = DEFAULT_CONFIG) -> int:
    return int(math.floor(cfg.base_entry_fee * cfg.min_entry_multiplier ** (race_number - 1)))

def calculate_entry_fees(race_number: int, wallet: int, cfg: GameConfig = DEFAULT_CONFIG) -> List[EntryFee]:
    """Min/Med/Max entry tiers the player can currently afford.

    Tiers that collapse onto the same amount (because of the wallet or the
    global cap) keep only the higher multiplier.
    """
    min_bet = min_entry_fee(race_number, cfg)
    max_allowed = min(wallet, cfg.max_entry_fee)
    fees = [
        EntryFee(min(min_bet, max_allowed), 1, "Min"),
        EntryFee(min(int(math.floor(min_bet * 2.5)), max_allowed), 2, "Med"),
        EntryFee(min(min_bet * 5, max_allowed), 3, "Max"),
    ]
    fees = [f for f in fees if 0 < f.amount <= wallet]

    out: List[EntryFee] = []
    seen = set()
    for fee in reversed(fees):
        if fee.amount not in seen:
            out.insert(0, fee)
            seen.add(fee.amount)
    return out

def calculate_comeback_bonus(race_number: int, wallet: float, cfg: GameConfig = DEFAULT_CONFIG) -> float:
    """Single difficulty-assist knob: 3 (desperate) .. 1 (thriving)."""
    fee = max(1, min_entry_fee(race_number, cfg))
    ratio = wallet / fee
    for bound, mult in COMEBACK_TIERS:
        if ratio < bound:
            return mult
    return 1.0

def comeback_active(race_number: Optional[int], wallet: Optional[float], cfg: GameConfig = DEFAULT_CONFIG) -> bool:
    if race_number is None or wallet is None:
        return False
    return calculate_comeback_bonus(race_number, wallet, cfg) > 1

def calculate_prize_pool(entry_fee: Optional[EntryFee], cfg: GameConfig = DEFAULT_CONFIG) -> PrizePool:
    if entry_fee is None or entry_fee.amount <= 0:
        return PrizePool(0, 0, 0)
    total = entry_fee.amount * (cfg.ai_horses_count + 1)
    first, second, third = (total * pct // 100 for pct in PRIZE_SPLIT)
    return PrizePool(first=first, second=second, third=third)

def process_player_winnings(results: Sequence[RaceParticipant], player_horse: Horse, prize_pool: PrizePool) -> PlayerResult:
    ids = [p.id for p in results]
    # A player horse missing from the field ranks last.
    position = ids.index(player_horse.id) if player_horse.id in ids else len(ids)
    prizes = prize_pool.as_list()
    winnings = prizes[position] if position < len(prizes) else 0
    logger.debug("Player %s finished %d, winnings %d", player_horse.name, position + 1, winnings)
    return PlayerResult(position=position, winnings=winnings, placed=position < 3)
