from __future__ import annotations

from pathlib import Path
from typing import Dict, Literal, Optional, Union

import os
import time
import yaml
from pydantic import BaseModel, Field

from .models import RaceConfig

Difficulty = Literal["easy", "standard", "hard"]


class DifficultyPreset(BaseModel):
	temperature: float
	margin: float
	num_horses: int


DIFFICULTY_CONFIGS: Dict[str, DifficultyPreset] = {
	"easy": DifficultyPreset(temperature=25.0, margin=0.15, num_horses=8),
	"standard": DifficultyPreset(temperature=20.0, margin=0.18, num_horses=16),
	"hard": DifficultyPreset(temperature=15.0, margin=0.22, num_horses=16),
}

INITIAL_BANKROLL = 10000
MIN_BET = 100


def coerce_seed(seed: str) -> Union[int, str]:
	"""Read a seed typed as text: "42" and "-7" are integer seeds, anything else stays a string."""
	digits = seed[1:] if seed.startswith("-") else seed
	return int(seed) if digits.isdecimal() else seed


def _env_seed() -> Optional[Union[int, str]]:
	value = os.getenv("DERBY_SEED")
	return coerce_seed(value) if value else None


class AppConfig(BaseModel):
	# Race setup
	difficulty: Difficulty = "standard"
	num_horses: Optional[int] = None
	temperature: Optional[float] = None
	margin: Optional[float] = None
	seed: Optional[Union[int, str]] = Field(default_factory=_env_seed)
	race_number: int = 1
	# Monte Carlo
	monte_carlo_trials: int = 50000
	batch_size: Optional[int] = None
	floor_odds: float = 1.05
	# Bankroll / stakes
	initial_bankroll: int = INITIAL_BANKROLL
	min_bet: int = MIN_BET
	max_bet_percentage: float = 0.5

	@staticmethod
	def load(config_path: Optional[str] = None) -> "AppConfig":
		data = {}
		if config_path and Path(config_path).exists():
			with open(config_path, "r", encoding="utf-8") as f:
				data = yaml.safe_load(f) or {}
		return AppConfig(**data)

	def race_config(self, seed: Optional[Union[int, str]] = None) -> RaceConfig:
		preset = DIFFICULTY_CONFIGS[self.difficulty]
		if seed is None:
			seed = self.seed if self.seed is not None else f"race-{self.race_number}-{int(time.time() * 1000)}"
		return RaceConfig(
			num_horses=self.num_horses if self.num_horses is not None else preset.num_horses,
			temperature=self.temperature if self.temperature is not None else preset.temperature,
			margin=self.margin if self.margin is not None else preset.margin,
			seed=seed,
			difficulty=self.difficulty,
		)
