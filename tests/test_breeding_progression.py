"""Tests for paddock.breeding and paddock.progression."""

import pytest

from paddock.breeding import blend_hue, breed_horses, clamp_int, inherit_traits
from paddock.progression import (
    apply_race_fatigue,
    get_specialization_bonus,
    specialization_level_for,
    update_horse_specialization,
)
from paddock.rng import RNG


class TestClampAndHue:
    def test_clamp(self):
        assert clamp_int(5, 30, 100) == 30
        assert clamp_int(150, 30, 100) == 100
        assert clamp_int(55, 30, 100) == 55

    def test_hue_short_way_round(self):
        h = blend_hue(350, 10)
        assert min(h, 360.0 - h) == pytest.approx(0.0, abs=1e-6)

    def test_hue_plain_mean(self):
        assert blend_hue(100, 200) == pytest.approx(150.0)


class TestInheritTraits:
    def test_cap_and_floor(self, cfg):
        catalog = list(cfg.traits)
        p1 = ("earlySpeed", "closer", "mudder")
        p2 = ("frontRunner", "versatile", "sprinter")
        for seed in range(500):
            out = inherit_traits(RNG(seed), p1, p2, catalog)
            assert 1 <= len(out) <= 3
            assert len(set(out)) == len(out)

    def test_zero_trait_parents_still_get_one(self, cfg):
        catalog = list(cfg.traits)
        for seed in range(200):
            out = inherit_traits(RNG(seed), (), (), catalog)
            assert 1 <= len(out) <= 3
            assert all(t in catalog for t in out)


class TestBreedHorses:
    def test_offspring_bands(self, cfg, make_horse):
        a = make_horse(speed=100, booster_power=100, distance_preference=2600, traits=("closer",))
        b = make_horse(speed=100, booster_power=100, distance_preference=2600, traits=("sprinter",))
        for seed in range(200):
            foal = breed_horses(RNG(seed), a, b, cfg)
            assert 30 <= foal.speed <= 105
            assert 30 <= foal.booster_power <= 105
            assert 600 <= foal.distance_preference <= 2800
            assert 0 <= foal.color < 360
            assert 1 <= len(foal.traits) <= 3

    def test_offspring_identity(self, rng, cfg, make_horse):
        a, b = make_horse(name="Dam"), make_horse(name="Sire")
        foal = breed_horses(rng, a, b, cfg)
        assert foal.id.startswith("BRD-")
        assert foal.parents == ("Dam", "Sire")
        assert foal.is_player and foal.is_new
        assert foal.fatigue == 0
        assert foal.specialization_level == "Rookie"

    def test_parents_untouched(self, rng, cfg, make_horse):
        a, b = make_horse(), make_horse()
        before = (a, b)
        breed_horses(rng, a, b, cfg)
        assert (a, b) == before

    def test_bonus_lifts_average(self, cfg, make_horse):
        a, b = make_horse(speed=60), make_horse(speed=60)
        foals = [breed_horses(RNG(s), a, b, cfg) for s in range(400)]
        mean = sum(f.speed for f in foals) / len(foals)
        # 60 * 1.05 + 5 mean noise
        assert 66 < mean < 69

    def test_comeback_bonus_lifts_further(self, cfg, make_horse):
        a, b = make_horse(speed=60), make_horse(speed=60)
        foals = [breed_horses(RNG(s), a, b, cfg, race_number=1, wallet=5) for s in range(400)]
        mean = sum(f.speed for f in foals) / len(foals)
        # 60 * 1.10 + 5 mean noise
        assert 69.5 < mean < 72.5


class TestSpecialization:
    def test_levels(self, cfg):
        assert specialization_level_for(0, 0, cfg) == "Rookie"
        assert specialization_level_for(0, 1, cfg) == "Rookie+"
        assert specialization_level_for(1, 0, cfg) == "Champion"
        assert specialization_level_for(3, 0, cfg) == "Master"
        assert specialization_level_for(6, 2, cfg) == "Legend"

    def test_second_then_win(self, cfg, make_horse):
        h = make_horse()
        h = update_horse_specialization(h, 1800, 1, cfg)
        assert h.specialization_level == "Rookie+"
        assert (h.total_races, h.total_seconds) == (1, 1)
        h = update_horse_specialization(h, 1800, 0, cfg)
        assert h.specialization_level == "Champion"
        assert (h.total_races, h.total_wins) == (2, 1)

    def test_unplaced_only_counts_race(self, cfg, make_horse):
        h = update_horse_specialization(make_horse(), 1000, 5, cfg)
        assert (h.total_races, h.total_wins, h.total_seconds) == (1, 0, 0)
        assert h.specialization_level == "Rookie"

    def test_never_regresses(self, cfg, make_horse):
        h = make_horse()
        levels = []
        for pos in (0, 4, 0, 7, 0, 3, 5):
            h = update_horse_specialization(h, 1800, pos, cfg)
            levels.append(h.specialization_level)
        order = ["Rookie", "Rookie+", "Champion", "Master", "Legend"]
        ranks = [order.index(lv) for lv in levels]
        assert ranks == sorted(ranks)

    def test_bonus_values(self, cfg, make_horse):
        assert get_specialization_bonus(make_horse(), cfg) == 0.0
        assert get_specialization_bonus(make_horse(specialization_level="Champion"), cfg) == 0.05
        assert get_specialization_bonus(make_horse(specialization_level="Master"), cfg) == 0.08
        assert get_specialization_bonus(make_horse(specialization_level="Legend"), cfg) == 0.12

    def test_champion_bonus_under_comeback(self, cfg, make_horse):
        champ = make_horse(specialization_level="Champion")
        assert get_specialization_bonus(champ, cfg, race_number=1, wallet=5) == 0.08
        assert get_specialization_bonus(champ, cfg, race_number=1, wallet=100) == 0.05


class TestFatigue:
    def test_adds_and_clamps(self, cfg, make_horse):
        assert apply_race_fatigue(make_horse(), cfg).fatigue == 20
        assert apply_race_fatigue(make_horse(fatigue=90), cfg).fatigue == 100

    def test_brittle_tires_faster(self, cfg, make_horse):
        assert apply_race_fatigue(make_horse(traits=("brittle",)), cfg).fatigue == 30
