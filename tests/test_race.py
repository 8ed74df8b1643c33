from __future__ import annotations

import math
from collections import Counter

import pytest
from pydantic import ValidationError

from derby_odds.errors import RaceConfigError
from derby_odds.models import Horse, RaceConfig
from derby_odds.race import (
	calculate_weights,
	check_field,
	generate_horses,
	place_threshold,
	run_simulations,
	simulate,
	simulate_with_rng,
	win_probabilities,
)


class FixedRNG:
	def __init__(self, value: float):
		self.value = value
		self.calls = 0

	def next(self) -> float:
		self.calls += 1
		return self.value


def test_weights_are_exp_rating_over_temperature(make_field):
	horses = make_field([80.0, 60.0])
	weights = calculate_weights(horses, 20.0)
	assert abs(weights[0] - math.exp(4.0)) < 1e-9
	assert abs(weights[1] - math.exp(3.0)) < 1e-9


def test_win_probabilities_sum_to_one(eight_horses):
	probs = win_probabilities(eight_horses, 20.0)
	assert abs(probs.sum() - 1.0) < 1e-12
	assert all(p > 0 for p in probs)


def test_non_positive_temperature_rejected(make_field):
	with pytest.raises(RaceConfigError):
		calculate_weights(make_field([70.0]), 0.0)
	with pytest.raises(ValidationError):
		RaceConfig(num_horses=8, temperature=0, margin=0.18, seed=1)
	with pytest.raises(ValidationError):
		RaceConfig(num_horses=0, temperature=20, margin=0.18, seed=1)


def test_overflowing_weights_rejected(make_field):
	with pytest.raises(RaceConfigError):
		calculate_weights(make_field([100.0]), 0.01)


def test_field_must_match_config(eight_horses, eight_horse_config):
	with pytest.raises(RaceConfigError):
		check_field(eight_horses[:7], eight_horse_config)
	shuffled = list(reversed(eight_horses))
	with pytest.raises(RaceConfigError):
		check_field(shuffled, eight_horse_config)


@pytest.mark.parametrize("n", [1, 2, 3, 7, 8, 16])
def test_simulate_returns_permutation(make_field, n):
	horses = make_field([60.0 + 2.5 * i for i in range(n)])
	for seed in range(20):
		config = RaceConfig(num_horses=n, temperature=20.0, margin=0.18, seed=seed)
		order = simulate(horses, config)
		assert sorted(order) == list(range(1, n + 1))


def test_simulate_is_deterministic(eight_horses, eight_horse_config):
	assert simulate(eight_horses, eight_horse_config) == simulate(eight_horses, eight_horse_config)


def test_simulate_consumes_one_draw_per_place():
	rng = FixedRNG(0.0)
	order = simulate_with_rng([1, 2, 3, 4], [1.0, 2.0, 3.0, 4.0], rng)
	assert rng.calls == 4
	# u == 0 always lands on the first remaining horse
	assert order == (1, 2, 3, 4)


def test_exhausted_walk_falls_back_to_last_candidate():
	rng = FixedRNG(1.0)
	order = simulate_with_rng([1, 2, 3], [0.1, 0.1, 0.1], rng)
	assert order[0] == 3
	assert sorted(order) == [1, 2, 3]


def test_stronger_horse_wins_most(make_field):
	horses = make_field([95.0, 80.0, 78.0, 75.0, 72.0, 70.0, 66.0, 62.0])
	config = RaceConfig(num_horses=8, temperature=20.0, margin=0.18, seed="strong")
	wins = Counter(order[0] for order in run_simulations(horses, config, 5000))
	for horse_id in range(2, 9):
		assert wins[1] > wins[horse_id]


def test_empirical_win_rate_matches_weights(eight_horses, eight_horse_config):
	theoretical = win_probabilities(eight_horses, eight_horse_config.temperature)
	runs = run_simulations(eight_horses, eight_horse_config, 10000)
	wins = Counter(order[0] for order in runs)
	for i, h in enumerate(eight_horses):
		assert abs(wins[h.id] / len(runs) - theoretical[i]) < 0.03


def test_run_simulations_offset_matches_full_run(eight_horses, eight_horse_config):
	full = run_simulations(eight_horses, eight_horse_config, 30)
	assert run_simulations(eight_horses, eight_horse_config, 10, start=20) == full[20:]


def test_place_threshold():
	assert place_threshold(16) == 3
	assert place_threshold(8) == 3
	assert place_threshold(7) == 2
	assert place_threshold(2) == 2


def test_generate_horses_is_seeded():
	config = RaceConfig(num_horses=16, temperature=20.0, margin=0.18, seed="race-9")
	a = generate_horses(config)
	b = generate_horses(config)
	assert a == b
	assert [h.id for h in a] == list(range(1, 17))
	assert len({h.name for h in a}) == 16
	assert all(60.0 <= h.rating <= 100.0 for h in a)
	other = generate_horses(config.model_copy(update={"seed": "race-10"}))
	assert [h.rating for h in other] != [h.rating for h in a]


def test_generate_horses_beyond_name_pool():
	config = RaceConfig(num_horses=24, temperature=20.0, margin=0.18, seed=1)
	horses = generate_horses(config)
	assert len({h.name for h in horses}) == 24


def test_horse_is_immutable():
	h = Horse(id=1, name="Thunder Bolt", rating=80.0)
	with pytest.raises(ValidationError):
		h.rating = 90.0
