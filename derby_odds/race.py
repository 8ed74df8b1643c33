from __future__ import annotations

from typing import List, Sequence

import numpy as np

from .errors import RaceConfigError
from .logging_utils import get_logger
from .models import FinishOrder, Horse, RaceConfig
from .rng import DeterministicRNG, derive_trial_seed

logger = get_logger(__name__)

HORSE_NAMES = [
	"Thunder Bolt",
	"Swift Wind",
	"Golden Arrow",
	"Midnight Star",
	"Lucky Charm",
	"Fire Storm",
	"Ocean Wave",
	"Silver Moon",
	"Iron Duke",
	"Desert Rose",
	"Copper Kettle",
	"Northern Light",
	"Velvet Storm",
	"Blue Horizon",
	"Quiet Riot",
	"Crimson Tide",
	"Morning Glory",
	"Wild Card",
	"Stormy Petrel",
	"Autumn Blaze",
]

HORSE_COLORS = [
	"#ef4444",
	"#3b82f6",
	"#f59e0b",
	"#8b5cf6",
	"#10b981",
	"#f97316",
	"#06b6d4",
	"#6366f1",
	"#ec4899",
	"#84cc16",
	"#14b8a6",
	"#a855f7",
	"#eab308",
	"#0ea5e9",
	"#f43f5e",
	"#22c55e",
]

MIN_RATING = 60.0
MAX_RATING = 100.0


def place_threshold(num_horses: int) -> int:
	return 3 if num_horses >= 8 else 2


def check_field(horses: Sequence[Horse], config: RaceConfig) -> None:
	if config.num_horses <= 0:
		raise RaceConfigError(f"num_horses must be positive, got {config.num_horses}")
	if len(horses) != config.num_horses:
		raise RaceConfigError(f"config expects {config.num_horses} horses, got {len(horses)}")
	ids = [h.id for h in horses]
	if ids != list(range(1, len(horses) + 1)):
		raise RaceConfigError(f"horse ids must run 1..{len(horses)} in order, got {ids}")


def calculate_weights(horses: Sequence[Horse], temperature: float) -> np.ndarray:
	"""Plackett-Luce strengths: exp(rating / temperature)."""
	if temperature <= 0:
		raise RaceConfigError(f"temperature must be positive, got {temperature}")
	ratings = np.array([h.rating for h in horses], dtype=float)
	with np.errstate(over="ignore"):
		weights = np.exp(ratings / temperature)
	if not np.all(np.isfinite(weights)):
		raise RaceConfigError(f"ratings overflow at temperature {temperature}")
	return weights


def win_probabilities(horses: Sequence[Horse], temperature: float) -> np.ndarray:
	weights = calculate_weights(horses, temperature)
	return weights / weights.sum()


def simulate_with_rng(horse_ids: Sequence[int], weights: Sequence[float], rng: DeterministicRNG) -> FinishOrder:
	"""Draw one full finish order, consuming one rng.next() per place."""
	remaining = list(range(len(horse_ids)))
	order: List[int] = []
	while remaining:
		total = 0.0
		for idx in remaining:
			total += weights[idx]
		u = rng.next() * total
		# float rounding can leave u > 0 after the walk; the last candidate takes it
		chosen = remaining[-1]
		for idx in remaining:
			u -= weights[idx]
			if u <= 0:
				chosen = idx
				break
		remaining.remove(chosen)
		order.append(horse_ids[chosen])
	return tuple(order)


def simulate(horses: Sequence[Horse], config: RaceConfig) -> FinishOrder:
	check_field(horses, config)
	weights = calculate_weights(horses, config.temperature).tolist()
	order = simulate_with_rng([h.id for h in horses], weights, DeterministicRNG(config.seed))
	logger.debug("Race %s finished: %s", config.seed, "-".join(str(h) for h in order))
	return order


def run_simulations(horses: Sequence[Horse], config: RaceConfig, trial_count: int, start: int = 0) -> List[FinishOrder]:
	if trial_count < 0:
		raise RaceConfigError(f"trial_count must be non-negative, got {trial_count}")
	check_field(horses, config)
	ids = [h.id for h in horses]
	weights = calculate_weights(horses, config.temperature).tolist()
	return [
		simulate_with_rng(ids, weights, DeterministicRNG(derive_trial_seed(config.seed, trial)))
		for trial in range(start, start + trial_count)
	]


def generate_horses(config: RaceConfig) -> List[Horse]:
	"""Deterministic field for a race seed: shuffled names, ratings in [60, 100)."""
	if config.num_horses <= 0:
		raise RaceConfigError(f"num_horses must be positive, got {config.num_horses}")
	rng = DeterministicRNG(f"{config.seed}-field")
	names = rng.shuffle(HORSE_NAMES)
	horses: List[Horse] = []
	for i in range(config.num_horses):
		name = names[i % len(names)]
		if i >= len(names):
			name = f"{name} {i // len(names) + 1}"
		horses.append(
			Horse(
				id=i + 1,
				name=name,
				rating=round(rng.range(MIN_RATING, MAX_RATING), 1),
				color=HORSE_COLORS[i % len(HORSE_COLORS)],
			)
		)
	return horses
