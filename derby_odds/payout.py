from __future__ import annotations

import math
from collections import Counter
from typing import List, Optional, Sequence

from .errors import FinishOrderError
from .logging_utils import get_logger
from .models import Bet, BetType, BetValidation, OddsTable, PairKey, Payout, RaceResult, TripleKey
from .race import place_threshold

logger = get_logger(__name__)


def check_finish_order(finish_order: Sequence[int], num_horses: int) -> None:
	if len(finish_order) != num_horses:
		raise FinishOrderError(f"finish order has {len(finish_order)} entries for a field of {num_horses}")
	if sorted(finish_order) != list(range(1, num_horses + 1)):
		dupes = sorted(h for h, n in Counter(finish_order).items() if n > 1)
		missing = sorted(set(range(1, num_horses + 1)) - set(finish_order))
		raise FinishOrderError(f"finish order is not a permutation of 1..{num_horses}: duplicates={dupes} missing={missing}")


def is_bet_winner(bet: Bet, finish_order: Sequence[int]) -> bool:
	horses = bet.horses
	if bet.type == BetType.WIN:
		return finish_order[0] == horses[0]
	if bet.type == BetType.PLACE:
		return horses[0] in finish_order[: place_threshold(len(finish_order))]
	if bet.type == BetType.QUINELLA:
		return set(horses) == set(finish_order[:2])
	if bet.type == BetType.TRIFECTA:
		return tuple(horses) == tuple(finish_order[:3])
	raise ValueError(f"unknown bet type: {bet.type}")


def odds_for_bet(bet: Bet, table: OddsTable) -> float:
	horses = bet.horses
	if bet.type in (BetType.WIN, BetType.PLACE):
		prices = table.win if bet.type == BetType.WIN else table.place
		idx = horses[0] - 1
		return prices[idx] if 0 <= idx < len(prices) else 0.0
	if bet.type == BetType.QUINELLA:
		return table.quinella.get(PairKey.of(horses[0], horses[1]), 0.0)
	if bet.type == BetType.TRIFECTA:
		return table.trifecta.get(TripleKey(horses[0], horses[1], horses[2]), 0.0)
	raise ValueError(f"unknown bet type: {bet.type}")


def calculate_bet_payout(bet: Bet, finish_order: Sequence[int], table: OddsTable) -> Payout:
	if len(bet.horses) != bet.type.horse_count or len(set(bet.horses)) != len(bet.horses):
		raise ValueError(f"{bet.type.value} bet has invalid horses {bet.horses}; validate bets before resolving")
	odds = odds_for_bet(bet, table)
	# an unpriced combination cannot pay, even if it came in
	won = odds > 0 and is_bet_winner(bet, finish_order)
	payout = math.floor(bet.stake * odds) if won else 0
	return Payout(bet=bet, won=won, payout=payout, odds=odds)


def check_finish_settles(bets: Sequence[Bet], finish_order: Sequence[int]) -> None:
	for bet in bets:
		need = bet.type.horse_count
		if bet.type in (BetType.QUINELLA, BetType.TRIFECTA) and len(finish_order) < need:
			raise FinishOrderError(f"a {len(finish_order)}-horse finish cannot settle a {bet.type.value} bet")


def resolve(bets: Sequence[Bet], finish_order: Sequence[int], table: OddsTable) -> RaceResult:
	check_finish_order(finish_order, table.num_horses)
	check_finish_settles(bets, finish_order)
	payouts = [calculate_bet_payout(bet, finish_order, table) for bet in bets]
	total_stake = sum(bet.stake for bet in bets)
	total_payout = sum(p.payout for p in payouts)
	result = RaceResult(
		finish_order=tuple(finish_order),
		payouts=payouts,
		total_stake=total_stake,
		total_payout=total_payout,
		net_profit=total_payout - total_stake,
	)
	logger.info("Resolved %d bets: stake %d, payout %d, net %+d", len(bets), total_stake, total_payout, result.net_profit)
	return result


def validate_bet(
	bet: Bet,
	bankroll: float,
	current_total_stake: int,
	max_bet_percentage: float,
	min_stake: int,
) -> Optional[str]:
	"""Return the reason a bet is not allowed, or None when it is."""
	if bet.stake < min_stake:
		return f"Minimum bet is {min_stake} points"
	if bet.stake <= 0:
		return "Invalid bet amount"
	total_after = current_total_stake + bet.stake
	if total_after > bankroll:
		return "Insufficient bankroll"
	if total_after > bankroll * max_bet_percentage:
		return f"Maximum bet per race is {round(max_bet_percentage * 100)}% of bankroll"
	if not bet.horses:
		return "No horses selected"
	if len(set(bet.horses)) != len(bet.horses):
		return "Cannot select the same horse multiple times"
	need = bet.type.horse_count
	if len(bet.horses) != need:
		return f"{bet.type.label} bet requires {need} horse{'s' if need > 1 else ''}"
	return None


def validate_bets(
	bets: Sequence[Bet],
	bankroll: float,
	max_bet_percentage: float,
	min_stake: int,
) -> BetValidation:
	if not bets:
		return BetValidation(valid=False, errors=["No bets placed"])
	errors: List[str] = []
	total_stake = 0
	for i, bet in enumerate(bets, start=1):
		error = validate_bet(bet, bankroll, total_stake, max_bet_percentage, min_stake)
		if error:
			errors.append(f"Bet {i}: {error}")
		else:
			# rejected bets do not count toward the running total
			total_stake += bet.stake
	if errors:
		logger.warning("Bet validation failed: %s", "; ".join(errors))
	return BetValidation(valid=not errors, errors=errors)
