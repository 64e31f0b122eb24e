"""Shared fixtures for paddock tests."""

import pytest

from paddock.config import DEFAULT_CONFIG
from paddock.models import Horse, next_horse_id
from paddock.rng import RNG


@pytest.fixture
def rng():
    return RNG(12345)


@pytest.fixture
def cfg():
    return DEFAULT_CONFIG


@pytest.fixture
def make_horse():
    """Factory for plain player horses; keyword overrides go straight to Horse."""

    def _make(**kw):
        values = dict(
            id=next_horse_id("PLY"),
            name="Test Runner",
            speed=60,
            booster_power=60,
            distance_preference=1800,
            color=120,
            is_player=True,
            traits=(),
        )
        values.update(kw)
        return Horse(**values)

    return _make
