from __future__ import annotations
from typing import List, Optional, Sequence

from .models import PrizePool, RaceParticipant

def process_race_results(participants: Sequence[RaceParticipant]) -> List[RaceParticipant]:
    """Final standings.

    Finished horses first, by finish tick (stable sort, so a dead heat keeps
    field order); unfinished horses after them, closest to the line first.
    """
    finished = sorted((p for p in participants if p.has_finished), key=lambda p: p.finish_time or 0)
    unfinished = sorted((p for p in participants if not p.has_finished), key=lambda p: -p.progress)
    return finished + unfinished

def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suf = "th"
    else:
        suf = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suf}"

def render_race_card(
    race_number: int,
    race_distance: int,
    results: Sequence[RaceParticipant],
    prize_pool: Optional[PrizePool] = None,
    player_ids: Sequence[str] = (),
) -> str:
    lines: List[str] = []
    lines.append(f"Race {race_number} | {race_distance}m | {len(results)} runners")
    lines.append("")
    lines.append("Pos  Horse                     Finish  Prog   Level     Earned")
    lines.append("---  ------------------------  ------  -----  --------  ------")
    prizes = prize_pool.as_list() if prize_pool is not None else (0, 0, 0)
    for i, p in enumerate(results):
        h = p.horse
        mark = "*" if h.id in player_ids else " "
        finish = f"t{p.finish_time}" if p.has_finished else "DNF"
        earned = prizes[i] if i < len(prizes) else 0
        lines.append(
            f"{i + 1:>3} {mark}{h.name[:24]:<24}  {finish:>6}  {min(100.0, p.progress):>5.1f}  "
            f"{h.specialization_level:<8}  ${earned:>5,}"
        )
    if player_ids:
        lines.append("")
        lines.append("* = your horse")
    return "\n".join(lines)
