"""Tests for paddock.session and the paddock CLI."""

import json

import pytest

from paddock.main import main
from paddock.models import EntryFee, Upgrade
from paddock.session import (
    BREEDING,
    HORSE_BUYING,
    HORSE_PICKER,
    HORSE_SELECTION,
    POST_RACE,
    GameError,
    GameSession,
)


@pytest.fixture
def session(cfg):
    return GameSession(seed=2024, cfg=cfg)


def _race(session):
    horse = session.select_best_horse()
    return horse, session.start_race(horse.id, session.entry_fees()[0])


class TestNewGame:
    def test_initial_state(self, session, cfg):
        assert session.wallet == cfg.initial_wallet
        assert session.race_number == 1
        assert session.race_distance == cfg.race_distances[0]
        assert session.phase == HORSE_SELECTION
        assert len(session.player_horses) == len(cfg.race_distances)
        assert len(session.ai_horses) == cfg.ai_horses_count
        assert set(session.scout_reports) == {h.id for h in session.ai_horses}

    def test_same_seed_same_game(self, cfg):
        a, b = GameSession(seed=7, cfg=cfg), GameSession(seed=7, cfg=cfg)
        assert [h.speed for h in a.player_horses] == [h.speed for h in b.player_horses]
        assert [h.speed for h in a.ai_horses] == [h.speed for h in b.ai_horses]

    def test_restart(self, session, cfg):
        _race(session)
        session.new_game()
        assert session.wallet == cfg.initial_wallet
        assert session.race_number == 1
        assert session.phase == HORSE_SELECTION


class TestRace:
    def test_start_race(self, session):
        before = session.wallet
        horse, result = _race(session)
        assert session.phase == POST_RACE
        assert session.wallet == before - 10 + result.winnings
        raced = session.find_horse(horse.id)
        assert raced.fatigue == horse.fatigue + (30 if "brittle" in horse.traits else 20)
        assert raced.total_races == 1
        assert 1 <= len(session.upgrade_options) <= 3
        assert session.last_outcome is not None

    def test_prize_pool(self, session):
        _race(session)
        assert session.last_prize_pool.as_list() == (56, 16, 8)

    def test_wrong_phase(self, session):
        _race(session)
        with pytest.raises(GameError):
            session.start_race(session.player_horses[0].id, EntryFee(10, 1, "Min"))

    def test_unaffordable_fee(self, session):
        with pytest.raises(GameError):
            session.start_race(session.player_horses[0].id, EntryFee(500, 3, "Max"))
        assert session.phase == HORSE_SELECTION

    def test_fee_must_be_offered(self, session):
        offered = {f.amount for f in session.entry_fees()}
        assert 1 not in offered
        with pytest.raises(GameError):
            session.start_race(session.player_horses[0].id, EntryFee(1, 1, "Min"))
        assert session.phase == HORSE_SELECTION
        assert session.wallet == 100

    def test_unknown_horse(self, session):
        with pytest.raises(GameError):
            session.start_race("PLY-999999", EntryFee(10, 1, "Min"))

    def test_boost_costs_money(self, session, cfg):
        horse = session.select_best_horse()
        result = session.start_race(horse.id, EntryFee(10, 1, "Min"), boost="focus")
        assert session.wallet == 100 - 10 - cfg.boosts["focus"].cost + result.winnings

    def test_unknown_boost_ignored(self, session, caplog):
        horse = session.select_best_horse()
        session.start_race(horse.id, EntryFee(10, 1, "Min"), boost="rocket")
        assert session.phase == POST_RACE
        assert "rocket" in caplog.text


class TestPostRace:
    def test_skip_advances(self, session, cfg):
        _race(session)
        first_field = session.ai_horses
        session.proceed_to_next_race()
        assert session.phase == HORSE_SELECTION
        assert session.race_number == 2
        assert session.race_distance == cfg.race_distances[1]
        assert session.ai_horses != first_field

    def test_distance_rotates(self, session, cfg):
        seen = []
        for _ in range(4):
            seen.append(session.race_distance)
            _race(session)
            session.proceed_to_next_race()
        assert seen == [1000, 1800, 2400, 1000]

    def test_unoffered_upgrade(self, session):
        _race(session)
        with pytest.raises(GameError):
            session.choose_upgrade(Upgrade("teleport", "?", ""))

    def test_horse_pick_flow(self, session):
        _race(session)
        up = Upgrade("speed", "Speed Training", "", requires_horse_pick=True, value=8)
        session.upgrade_options = (up,)
        session.choose_upgrade(up)
        assert session.phase == HORSE_PICKER
        target = session.player_horses[0]
        out = session.apply_pending_upgrade(target.id)
        assert out.speed == min(100, target.speed + 8)
        assert session.find_horse(target.id).speed == out.speed
        assert session.phase == HORSE_SELECTION

    def test_stable_wide_applies_immediately(self, session):
        _race(session)
        up = Upgrade("stableRest", "Spa Day", "")
        session.upgrade_options = (up,)
        session.choose_upgrade(up)
        assert all(h.fatigue == 0 for h in session.player_horses)
        assert session.race_number == 2

    def test_buy_horse(self, session):
        _race(session)
        up = Upgrade("buyHorse", "Buy New Horse", "")
        session.upgrade_options = (up,)
        session.choose_upgrade(up)
        assert session.phase == HORSE_BUYING
        assert len(session.buying_options) == 3
        bought = session.buy_horse(1)
        assert bought.is_player and bought.is_new
        assert bought in session.player_horses
        assert len(session.player_horses) == 4

    def test_buy_bad_index(self, session):
        _race(session)
        up = Upgrade("buyHorse", "Buy New Horse", "")
        session.upgrade_options = (up,)
        session.choose_upgrade(up)
        with pytest.raises(GameError):
            session.buy_horse(7)

    def test_breed(self, session):
        _race(session)
        up = Upgrade("breed", "Breed Horses", "")
        session.upgrade_options = (up,)
        session.choose_upgrade(up)
        assert session.phase == BREEDING
        a, b = session.player_horses[:2]
        with pytest.raises(GameError):
            session.breed(a.id, a.id)
        foal = session.breed(a.id, b.id)
        assert foal.parents == (a.name, b.name)
        assert foal in session.player_horses
        assert session.phase == HORSE_SELECTION


class TestWinLose:
    def test_win(self, session, cfg):
        session.wallet = cfg.win_condition
        assert session.has_won()

    def test_lose_when_broke(self, session):
        session.wallet = 0
        assert session.has_lost()

    def test_not_lost_with_min_fee(self, session):
        session.wallet = 10
        assert not session.has_lost()

    def test_not_lost_mid_flow(self, session):
        _race(session)
        up = Upgrade("breed", "Breed Horses", "")
        session.upgrade_options = (up,)
        session.choose_upgrade(up)
        session.wallet = 0
        assert not session.has_lost()


class TestCli:
    def test_autoplay(self, capsys):
        main(["--seed", "5", "--races", "2"])
        out = capsys.readouterr().out
        assert "Race 1 | 1000m" in out
        assert "Scout report:" in out

    def test_config_file(self, tmp_path, capsys):
        p = tmp_path / "cfg.json"
        p.write_text(json.dumps({"initial_wallet": 5000, "win_condition": 1000}), encoding="utf-8")
        main(["--seed", "5", "--races", "3", "--config", str(p)])
        assert "The stable is a success" in capsys.readouterr().out
