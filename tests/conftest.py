from __future__ import annotations

import pytest

from derby_odds.models import Horse, RaceConfig
from derby_odds.race import generate_horses


@pytest.fixture
def eight_horse_config() -> RaceConfig:
	return RaceConfig(num_horses=8, temperature=20.0, margin=0.18, seed="test-123", difficulty="standard")


@pytest.fixture
def eight_horses(eight_horse_config):
	return generate_horses(eight_horse_config)


@pytest.fixture
def make_field():
	def _make(ratings):
		return [Horse(id=i + 1, name=f"Horse {i + 1}", rating=r) for i, r in enumerate(ratings)]

	return _make
