from __future__ import annotations

import math
from typing import List, Sequence, TypeVar, Union

from .errors import RaceConfigError

T = TypeVar("T")

Seed = Union[int, str]

MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_SCALE = 4294967296.0  # 2**32


def _imul(a: int, b: int) -> int:
	return (a * b) & MASK32


def _utf16_units(text: str) -> List[int]:
	data = text.encode("utf-16-le", "surrogatepass")
	return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def hash_string(text: str) -> int:
	# hash * 31 + unit, folded to a signed 32-bit value, sign discarded
	h = 0
	for unit in _utf16_units(text):
		h = ((h << 5) - h + unit) & MASK32
	if h & 0x80000000:
		h -= 0x100000000
	return abs(h)


def seed_to_state(seed: Seed) -> int:
	if isinstance(seed, bool) or not isinstance(seed, (int, str)):
		raise RaceConfigError(f"seed must be an int or a non-empty str, got {seed!r}")
	if isinstance(seed, str):
		if not seed:
			raise RaceConfigError("seed must be a non-empty str")
		state = hash_string(seed)
	else:
		state = seed & MASK32
	# an all-zero state would start a degenerate stream
	return state or 1


def derive_trial_seed(seed: Seed, trial_index: int) -> int:
	"""Seed for one Monte Carlo trial.

	Depends only on the race seed and the trial's absolute index, so the
	way trials are split into batches never changes which races are drawn.
	"""
	seed_to_state(seed)
	if trial_index < 0:
		raise RaceConfigError(f"trial_index must be non-negative, got {trial_index}")
	return hash_string(f"{seed}-trial-{trial_index}")


class DeterministicRNG:
	"""Mulberry32 stream: every operation wraps at 32 bits."""

	def __init__(self, seed: Seed):
		self._state = seed_to_state(seed)

	@property
	def state(self) -> int:
		return self._state

	def next(self) -> float:
		self._state = (self._state + _INCREMENT) & MASK32
		t = self._state
		t = _imul(t ^ (t >> 15), t | 1)
		t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
		return ((t ^ (t >> 14)) & MASK32) / _SCALE

	def range(self, low: float, high: float) -> float:
		return low + self.next() * (high - low)

	def int(self, low: int, high: int) -> int:
		return math.floor(self.range(low, high + 1))

	def choice(self, seq: Sequence[T]) -> T:
		if not seq:
			raise IndexError("cannot choose from an empty sequence")
		return seq[math.floor(self.next() * len(seq))]

	def shuffle(self, seq: Sequence[T]) -> List[T]:
		result = list(seq)
		for i in range(len(result) - 1, 0, -1):
			j = math.floor(self.next() * (i + 1))
			result[i], result[j] = result[j], result[i]
		return result

	def clone(self) -> "DeterministicRNG":
		twin = DeterministicRNG(1)
		twin._state = self._state
		return twin


def create_rng(seed: Seed) -> DeterministicRNG:
	return DeterministicRNG(seed)
