"""Tests for paddock.economy and paddock.race_reporting."""

import pytest

from paddock.economy import (
    calculate_comeback_bonus,
    calculate_entry_fees,
    calculate_prize_pool,
    comeback_active,
    min_entry_fee,
    process_player_winnings,
)
from paddock.models import EntryFee, PrizePool, RaceParticipant
from paddock.race_reporting import ordinal, process_race_results, render_race_card


def _participant(horse, progress=0.0, finish_time=None):
    return RaceParticipant(
        horse=horse,
        base_performance=1.0,
        momentum=1.0,
        energy=100.0,
        progress=progress,
        finish_time=finish_time,
        has_finished=finish_time is not None,
    )


class TestEntryFees:
    def test_min_fee_grows(self, cfg):
        assert min_entry_fee(1, cfg) == 10
        assert min_entry_fee(2, cfg) == 12
        assert min_entry_fee(5, cfg) == 24

    def test_three_tiers(self, cfg):
        fees = calculate_entry_fees(1, 100, cfg)
        assert [(f.label, f.amount) for f in fees] == [("Min", 10), ("Med", 25), ("Max", 50)]

    def test_wallet_caps_tiers(self, cfg):
        fees = calculate_entry_fees(1, 30, cfg)
        assert [(f.label, f.amount) for f in fees] == [("Min", 10), ("Med", 25), ("Max", 30)]

    def test_equal_amounts_keep_higher_tier(self, cfg):
        fees = calculate_entry_fees(1, 12, cfg)
        assert [(f.label, f.amount) for f in fees] == [("Min", 10), ("Max", 12)]

    def test_broke(self, cfg):
        assert calculate_entry_fees(1, 0, cfg) == []

    def test_global_cap(self, cfg):
        fees = calculate_entry_fees(20, 10_000, cfg)
        assert max(f.amount for f in fees) <= cfg.max_entry_fee


class TestComeback:
    @pytest.mark.parametrize("wallet,expected", [(5, 3.0), (15, 2.0), (35, 1.5), (100, 1.0)])
    def test_tiers_at_race_one(self, cfg, wallet, expected):
        assert calculate_comeback_bonus(1, wallet, cfg) == expected

    def test_monotonic_in_wallet(self, cfg):
        bonuses = [calculate_comeback_bonus(4, w, cfg) for w in range(0, 300, 5)]
        assert bonuses == sorted(bonuses, reverse=True)

    def test_active_flag(self, cfg):
        assert comeback_active(1, 5, cfg)
        assert not comeback_active(1, 100, cfg)
        assert not comeback_active(None, 5, cfg)

    def test_zero_min_fee(self, cfg):
        free = cfg.with_overrides(base_entry_fee=0)
        assert calculate_comeback_bonus(1, 0, free) == 3.0


class TestPrizes:
    def test_split(self, cfg):
        pool = calculate_prize_pool(EntryFee(20, 1, "Min"), cfg)
        assert pool == PrizePool(112, 32, 16)
        assert pool.total == 160

    def test_no_fee(self, cfg):
        assert calculate_prize_pool(None, cfg) == PrizePool(0, 0, 0)
        assert calculate_prize_pool(EntryFee(0, 1, "Min"), cfg) == PrizePool(0, 0, 0)

    def test_player_winnings(self, make_horse):
        horses = [make_horse() for _ in range(4)]
        results = [_participant(h, 100, i + 1) for i, h in enumerate(horses)]
        pool = PrizePool(112, 32, 16)
        assert process_player_winnings(results, horses[0], pool).winnings == 112
        second = process_player_winnings(results, horses[1], pool)
        assert (second.position, second.winnings, second.placed) == (1, 32, True)
        fourth = process_player_winnings(results, horses[3], pool)
        assert (fourth.position, fourth.winnings, fourth.placed) == (3, 0, False)

    def test_missing_horse_ranks_last(self, make_horse):
        results = [_participant(make_horse(), 100, i + 1) for i in range(3)]
        res = process_player_winnings(results, make_horse(), PrizePool(112, 32, 16))
        assert (res.position, res.winnings, res.placed) == (3, 0, False)


class TestResults:
    def test_order(self, make_horse):
        a, b, c, d = (make_horse(name=n) for n in "ABCD")
        parts = [
            _participant(a, progress=80),
            _participant(b, progress=101, finish_time=40),
            _participant(c, progress=95),
            _participant(d, progress=100, finish_time=38),
        ]
        assert [p.horse.name for p in process_race_results(parts)] == ["D", "B", "C", "A"]

    def test_dead_heat_keeps_field_order(self, make_horse):
        a, b = make_horse(name="A"), make_horse(name="B")
        parts = [_participant(a, 100, 30), _participant(b, 104, 30)]
        assert [p.horse.name for p in process_race_results(parts)] == ["A", "B"]

    def test_ordinal(self):
        assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 101)] == [
            "1st", "2nd", "3rd", "4th", "11th", "12th", "13th", "21st", "22nd", "101st"
        ]

    def test_race_card(self, make_horse):
        a, b = make_horse(name="Alpha"), make_horse(name="Bravo")
        card = render_race_card(3, 1800, [_participant(a, 100, 31), _participant(b, 87.5)],
                                PrizePool(112, 32, 16), player_ids=(a.id,))
        lines = card.splitlines()
        assert lines[0] == "Race 3 | 1800m | 2 runners"
        assert "*Alpha" in card and "t31" in card and "$  112" in card
        assert "DNF" in card and "87.5" in card
        assert lines[-1] == "* = your horse"
