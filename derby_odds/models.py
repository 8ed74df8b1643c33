from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

FinishOrder = Tuple[int, ...]


class BetType(str, Enum):
	WIN = "win"
	PLACE = "place"
	QUINELLA = "quinella"
	TRIFECTA = "trifecta"

	@property
	def horse_count(self) -> int:
		return _HORSE_COUNTS[self]

	@property
	def label(self) -> str:
		return self.value.capitalize()


_HORSE_COUNTS = {
	BetType.WIN: 1,
	BetType.PLACE: 1,
	BetType.QUINELLA: 2,
	BetType.TRIFECTA: 3,
}


class Horse(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: int = Field(gt=0)
	name: str
	rating: float
	color: str = "#9ca3af"


class RaceConfig(BaseModel):
	model_config = ConfigDict(frozen=True)

	num_horses: int = Field(gt=0)
	temperature: float = Field(gt=0)
	margin: float = Field(ge=0)
	seed: Union[StrictInt, StrictStr]
	difficulty: str = "standard"

	@field_validator("seed")
	@classmethod
	def _seed_not_blank(cls, v: Union[int, str]) -> Union[int, str]:
		if isinstance(v, str) and not v:
			raise ValueError("seed must be a non-empty string")
		return v


class Bet(BaseModel):
	type: BetType
	horses: List[int]
	stake: int


class Payout(BaseModel):
	bet: Bet
	won: bool
	payout: int
	odds: float


class RaceResult(BaseModel):
	finish_order: FinishOrder
	payouts: List[Payout]
	total_stake: int
	total_payout: int
	net_profit: int


class BetValidation(BaseModel):
	valid: bool
	errors: List[str] = Field(default_factory=list)


@dataclass(frozen=True, order=True)
class PairKey:
	"""Unordered pair of horse ids, always stored smaller id first."""

	low: int
	high: int

	def __post_init__(self) -> None:
		if not self.low < self.high:
			raise ValueError(f"pair key must be two distinct ids, smaller first: {self.low}-{self.high}")

	@classmethod
	def of(cls, a: int, b: int) -> "PairKey":
		return cls(min(a, b), max(a, b))

	@classmethod
	def parse(cls, text: str) -> "PairKey":
		parts = [int(p) for p in text.split("-")]
		if len(parts) != 2:
			raise ValueError(f"bad pair key: {text!r}")
		return cls.of(*parts)

	def __str__(self) -> str:
		return f"{self.low}-{self.high}"


@dataclass(frozen=True, order=True)
class TripleKey:
	"""Ordered 1st-2nd-3rd triple of horse ids. Never normalised."""

	first: int
	second: int
	third: int

	def __post_init__(self) -> None:
		if len({self.first, self.second, self.third}) != 3:
			raise ValueError(f"triple key needs three distinct ids: {self}")

	@classmethod
	def parse(cls, text: str) -> "TripleKey":
		parts = [int(p) for p in text.split("-")]
		if len(parts) != 3:
			raise ValueError(f"bad triple key: {text!r}")
		return cls(*parts)

	def __str__(self) -> str:
		return f"{self.first}-{self.second}-{self.third}"


@dataclass(frozen=True)
class OddsTable:
	win: Tuple[float, ...]
	place: Tuple[float, ...]
	quinella: Mapping[PairKey, float] = field(default_factory=dict)
	trifecta: Mapping[TripleKey, float] = field(default_factory=dict)

	def __post_init__(self) -> None:
		object.__setattr__(self, "win", tuple(float(o) for o in self.win))
		object.__setattr__(self, "place", tuple(float(o) for o in self.place))
		object.__setattr__(self, "quinella", MappingProxyType(dict(self.quinella)))
		object.__setattr__(self, "trifecta", MappingProxyType(dict(self.trifecta)))

	@property
	def num_horses(self) -> int:
		return len(self.win)

	def quinella_odds(self, a: int, b: int) -> float:
		return self.quinella.get(PairKey.of(a, b), 0.0)

	def trifecta_odds(self, first: int, second: int, third: int) -> float:
		return self.trifecta.get(TripleKey(first, second, third), 0.0)


@dataclass(frozen=True)
class EstimateProgress:
	completed_trials: int
	total_trials: int

	@property
	def percent(self) -> int:
		return round(self.completed_trials / self.total_trials * 100) if self.total_trials else 100


@dataclass(frozen=True)
class Estimate:
	"""Empirical market frequencies from a batch of simulated races."""

	trials: int
	win: Tuple[float, ...]
	place: Tuple[float, ...]
	quinella: Dict[PairKey, float]
	trifecta: Dict[TripleKey, float]
	place_threshold: int
