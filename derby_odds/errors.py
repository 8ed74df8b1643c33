from __future__ import annotations


class RaceConfigError(ValueError):
	"""Raised when a race is set up with inputs the engine cannot run with."""


class FinishOrderError(ValueError):
	"""Raised when a finish order is not a permutation of the field."""
