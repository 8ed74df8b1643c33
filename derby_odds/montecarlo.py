from __future__ import annotations

from collections import Counter
from typing import Callable, Iterator, Optional, Sequence, Union

import numpy as np

from .errors import RaceConfigError
from .logging_utils import get_logger
from .models import Estimate, EstimateProgress, FinishOrder, Horse, PairKey, RaceConfig, TripleKey
from .race import calculate_weights, check_field, place_threshold, simulate_with_rng
from .rng import DeterministicRNG, derive_trial_seed

logger = get_logger(__name__)

MIN_BATCH_SIZE = 1000
TARGET_BATCHES = 10


def default_batch_size(trial_count: int) -> int:
	return min(trial_count, max(MIN_BATCH_SIZE, trial_count // TARGET_BATCHES))


class MonteCarloEstimator:
	"""Tallies place, quinella and trifecta frequencies over many seeded races.

	Trials are run in caller-sized batches. Trial i always uses the seed
	derived from (config.seed, i), so the tallies after all trials are the
	same however the work was split. A caller may also stop early and take
	result() from the trials completed so far.
	"""

	def __init__(self, horses: Sequence[Horse], config: RaceConfig, total_trials: int):
		if total_trials <= 0:
			raise RaceConfigError(f"trial count must be positive, got {total_trials}")
		check_field(horses, config)
		self.config = config
		self.total_trials = total_trials
		self._ids = [h.id for h in horses]
		self._weights = calculate_weights(horses, config.temperature).tolist()
		self._place_k = place_threshold(len(horses))
		self._win_counts = np.zeros(len(horses), dtype=np.int64)
		self._place_counts = np.zeros(len(horses), dtype=np.int64)
		self._quinella_counts: Counter = Counter()
		self._trifecta_counts: Counter = Counter()
		self._completed = 0

	@property
	def completed_trials(self) -> int:
		return self._completed

	@property
	def done(self) -> bool:
		return self._completed >= self.total_trials

	@property
	def progress(self) -> EstimateProgress:
		return EstimateProgress(completed_trials=self._completed, total_trials=self.total_trials)

	def run_batch(self, count: int) -> EstimateProgress:
		if count <= 0:
			raise RaceConfigError(f"batch size must be positive, got {count}")
		stop = min(self.total_trials, self._completed + count)
		for trial in range(self._completed, stop):
			rng = DeterministicRNG(derive_trial_seed(self.config.seed, trial))
			self._tally(simulate_with_rng(self._ids, self._weights, rng))
		self._completed = stop
		logger.debug("Monte Carlo %s: %d/%d trials", self.config.seed, stop, self.total_trials)
		return self.progress

	def _tally(self, order: FinishOrder) -> None:
		# ids run 1..N, so id - 1 is the horse's position
		self._win_counts[order[0] - 1] += 1
		for horse_id in order[: self._place_k]:
			self._place_counts[horse_id - 1] += 1
		if len(order) >= 2:
			self._quinella_counts[PairKey.of(order[0], order[1])] += 1
		if len(order) >= 3:
			self._trifecta_counts[TripleKey(order[0], order[1], order[2])] += 1

	def result(self) -> Estimate:
		n = self._completed
		if n == 0:
			raise ValueError("no trials have been run yet")
		return Estimate(
			trials=n,
			win=tuple((self._win_counts / n).tolist()),
			place=tuple((self._place_counts / n).tolist()),
			quinella={key: count / n for key, count in self._quinella_counts.items()},
			trifecta={key: count / n for key, count in self._trifecta_counts.items()},
			place_threshold=self._place_k,
		)


def estimate(
	horses: Sequence[Horse],
	config: RaceConfig,
	trial_count: int,
	batch_size: Optional[int] = None,
) -> Iterator[Union[EstimateProgress, Estimate]]:
	"""Yield an EstimateProgress after every batch, then the final Estimate.

	Bad inputs raise here, before the first batch is requested.
	"""
	estimator = MonteCarloEstimator(horses, config, trial_count)
	size = batch_size if batch_size is not None else default_batch_size(trial_count)
	if size <= 0:
		raise RaceConfigError(f"batch size must be positive, got {size}")
	return _run_batches(estimator, size)


def _run_batches(estimator: MonteCarloEstimator, size: int) -> Iterator[Union[EstimateProgress, Estimate]]:
	while not estimator.done:
		yield estimator.run_batch(size)
	result = estimator.result()
	logger.info(
		"Estimated %d trials: %d quinella and %d trifecta combinations observed",
		result.trials,
		len(result.quinella),
		len(result.trifecta),
	)
	yield result


def run_estimate(
	horses: Sequence[Horse],
	config: RaceConfig,
	trial_count: int,
	batch_size: Optional[int] = None,
	on_progress: Optional[Callable[[EstimateProgress], None]] = None,
) -> Estimate:
	final: Optional[Estimate] = None
	for event in estimate(horses, config, trial_count, batch_size):
		if isinstance(event, EstimateProgress):
			if on_progress is not None:
				on_progress(event)
		else:
			final = event
	if final is None:
		raise RuntimeError("estimate finished without a result")
	return final
