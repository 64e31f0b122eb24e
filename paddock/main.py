from __future__ import annotations
import argparse
import logging
import secrets
from typing import List, Optional

from . import __version__
from .config import DEFAULT_CONFIG, load_config
from .models import Horse, Upgrade
from .race_reporting import ordinal, render_race_card
from .scouting import calculate_horse_reputation, get_distance_expertise
from .horses import calculate_distance_fit
from .session import BREEDING, HORSE_BUYING, HORSE_PICKER, GameSession
from .upgrades import can_apply_upgrade, get_comeback_info

logger = logging.getLogger(__name__)


def print_splash() -> None:
    print(f"\n  Paddock: horse racing stable sim  (v{__version__})")
    print("  " + ("=" * 46) + "\n")


def stable_lines(horses: List[Horse], race_distance: int) -> List[str]:
    out = []
    for h in horses:
        fit = calculate_distance_fit(h, race_distance)
        tags = ",".join(h.traits) or "-"
        new = " NEW" if h.is_new else ""
        out.append(
            f"  {h.name[:22]:<22} spd {h.speed:>3}  pref {h.distance_preference:>4}m "
            f"({get_distance_expertise(fit)})  fat {h.fatigue:>3}%  {h.specialization_level:<8} [{tags}]{new}"
        )
    return out


def scout_lines(session: GameSession) -> List[str]:
    out = []
    for h in session.ai_horses:
        rep = session.scout_reports.get(h.id)
        if rep is None:
            continue
        speed = str(h.speed) if rep.speed_visible else f"~{rep.estimated_speed}"
        notes = "; ".join(rep.notes) or "no intel"
        out.append(f"  {h.name[:22]:<22} spd {speed:>4}  {calculate_horse_reputation(h).level:<7} {notes}")
    return out


def pick_upgrade(session: GameSession) -> Optional[Upgrade]:
    for u in session.upgrade_options:
        ok, _ = can_apply_upgrade(u, session.wallet, len(session.player_horses))
        if ok:
            return u
    return None


def resolve_upgrade(session: GameSession, upgrade: Upgrade) -> str:
    session.choose_upgrade(upgrade)
    if session.phase == HORSE_PICKER:
        target = max(session.player_horses, key=lambda h: h.speed)
        session.apply_pending_upgrade(target.id)
        return f"{upgrade.name} -> {target.name}"
    if session.phase == HORSE_BUYING:
        horse = session.buy_horse(0)
        return f"{upgrade.name} -> bought {horse.name}"
    if session.phase == BREEDING:
        p1, p2 = sorted(session.player_horses, key=lambda h: -h.speed)[:2]
        foal = session.breed(p1.id, p2.id)
        return f"{upgrade.name} -> foal {foal.name} (spd {foal.speed})"
    return upgrade.name


def autoplay(session: GameSession, races: int) -> None:
    for _ in range(races):
        if session.has_won() or session.has_lost():
            break
        distance = session.race_distance
        print(f"\n=== Race {session.race_number} | {distance}m | wallet ${session.wallet:,} ===")
        print("Your stable:")
        print("\n".join(stable_lines(list(session.player_horses), distance)))
        print("Scout report:")
        print("\n".join(scout_lines(session)))

        fees = session.entry_fees()
        horse = session.select_best_horse()
        result = session.start_race(horse.id, fees[0])

        outcome = session.last_outcome
        print()
        print(render_race_card(
            session.race_number, distance, outcome.results if outcome else (),
            session.last_prize_pool, player_ids=(horse.id,),
        ))
        print(f"\n{horse.name} finished {ordinal(result.position + 1)}; winnings ${result.winnings:,}")

        info = get_comeback_info(session.race_number, session.wallet, session.cfg)
        if info.is_active:
            print(info.message)

        if session.has_won() or session.has_lost():
            break
        upgrade = pick_upgrade(session)
        if upgrade is None:
            session.proceed_to_next_race()
        else:
            print(f"Upgrade: {resolve_upgrade(session, upgrade)}")

    if session.has_won():
        print(f"\nYou reached ${session.wallet:,}. The stable is a success!")
    elif session.has_lost():
        print(f"\nOut of money at race {session.race_number} (${session.wallet:,}). Game over.")
    else:
        print(f"\nStopped after race {session.race_number - 1} with ${session.wallet:,}.")


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="paddock")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--races", type=int, default=10, help="How many races to auto-play.")
    ap.add_argument("--config", type=str, default=None, help="JSON file of config overrides.")
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # seed=0 means "random" (still printed so the run can be reproduced)
    if args.seed == 0:
        args.seed = secrets.randbelow(2_147_483_647 - 1) + 1
        print(f"(Using random seed: {args.seed})")

    cfg = load_config(args.config) if args.config else DEFAULT_CONFIG
    print_splash()
    logger.info("Auto-playing %d races (seed %d)", args.races, args.seed)
    session = GameSession(seed=args.seed, cfg=cfg)
    autoplay(session, max(0, args.races))


if __name__ == "__main__":
    main()
