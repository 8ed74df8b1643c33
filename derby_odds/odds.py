from __future__ import annotations

from typing import Any, Dict, List, Sequence

import numpy as np

from .logging_utils import get_logger
from .models import Estimate, EstimateProgress, Horse, OddsTable, PairKey, RaceConfig, TripleKey
from .race import win_probabilities

logger = get_logger(__name__)

FLOOR_ODDS = 1.05


def apply_overround(probabilities: Sequence[float], margin: float) -> np.ndarray:
	# win market only: entries are mutually exclusive, so renormalise then inflate
	probs = np.asarray(probabilities, dtype=float)
	total = probs.sum()
	if total <= 0:
		raise ValueError("probabilities must have a positive sum")
	return probs * (1.0 + margin) / total


def apply_margin(probability: float, margin: float) -> float:
	return probability * (1.0 + margin)


def to_decimal_odds(probability: float, floor_odds: float = FLOOR_ODDS) -> float:
	# a market never observed has no price
	if probability <= 0:
		return 0.0
	return max(floor_odds, 1.0 / probability)


def calculate_win_odds(horses: Sequence[Horse], config: RaceConfig, floor_odds: float = FLOOR_ODDS) -> List[float]:
	inflated = apply_overround(win_probabilities(horses, config.temperature), config.margin)
	return [to_decimal_odds(p, floor_odds) for p in inflated.tolist()]


def calculate_place_odds(place_probabilities: Sequence[float], margin: float, floor_odds: float = FLOOR_ODDS) -> List[float]:
	return [to_decimal_odds(apply_margin(p, margin), floor_odds) for p in place_probabilities]


def calculate_odds_table(
	horses: Sequence[Horse],
	config: RaceConfig,
	estimate: Estimate,
	floor_odds: float = FLOOR_ODDS,
) -> OddsTable:
	table = OddsTable(
		win=calculate_win_odds(horses, config, floor_odds),
		place=calculate_place_odds(estimate.place, config.margin, floor_odds),
		quinella={key: to_decimal_odds(apply_margin(p, config.margin), floor_odds) for key, p in estimate.quinella.items()},
		trifecta={key: to_decimal_odds(apply_margin(p, config.margin), floor_odds) for key, p in estimate.trifecta.items()},
	)
	logger.info(
		"Odds table for %s: %d horses, win overround %.3f, %d quinella / %d trifecta prices",
		config.seed,
		len(horses),
		overround(table.win),
		len(table.quinella),
		len(table.trifecta),
	)
	return table


def overround(odds: Sequence[float]) -> float:
	"""Sum of implied probabilities; unpriced entries are skipped."""
	return float(sum(1.0 / o for o in odds if o > 0))


def progress_message(progress: EstimateProgress) -> Dict[str, Any]:
	return {
		"type": "progress",
		"progress": progress.percent,
		"trials": progress.completed_trials,
		"totalTrials": progress.total_trials,
	}


def odds_message(table: OddsTable) -> Dict[str, Any]:
	return {
		"type": "result",
		"winOdds": list(table.win),
		"placeOdds": list(table.place),
		"quinellaOdds": [[str(key), odds] for key, odds in sorted(table.quinella.items())],
		"trifectaOdds": [[str(key), odds] for key, odds in sorted(table.trifecta.items())],
	}


def odds_table_from_message(message: Dict[str, Any]) -> OddsTable:
	if message.get("type", "result") != "result":
		raise ValueError(f"expected a result message, got {message.get('type')!r}")
	return OddsTable(
		win=message["winOdds"],
		place=message["placeOdds"],
		quinella={PairKey.parse(key): float(odds) for key, odds in message.get("quinellaOdds", [])},
		trifecta={TripleKey.parse(key): float(odds) for key, odds in message.get("trifectaOdds", [])},
	)
