from __future__ import annotations

import re
from pathlib import Path
from typing import List

from .models import Bet, BetType

SLIP_RE = re.compile(r"^(?P<type>win|place|quinella|trifecta)\s*[:@]\s*(?P<horses>[0-9]+(?:\s*[-,/]\s*[0-9]+)*)\s*[:x]\s*(?P<stake>-?[0-9]+)$", re.IGNORECASE)


def parse_bet_slip(text: str) -> Bet:
	"""Parse one bet slip, e.g. "win:3:100", "quinella:1-2:200", "trifecta:4,1,7:100".

	Horse counts are not checked here; validate_bets reports those.
	"""
	m = SLIP_RE.match(text.strip())
	if not m:
		raise ValueError(f"Unrecognised bet slip {text!r}; expected TYPE:HORSES:STAKE")
	horses = [int(h) for h in re.split(r"\s*[-,/]\s*", m.group("horses"))]
	return Bet(type=BetType(m.group("type").lower()), horses=horses, stake=int(m.group("stake")))


def parse_bet_slips(slips: List[str]) -> List[Bet]:
	return [parse_bet_slip(s) for s in slips]


def parse_bet_file(path: str | Path) -> List[Bet]:
	bets: List[Bet] = []
	for raw in Path(path).read_text(encoding="utf-8").splitlines():
		line = raw.split("#", 1)[0].strip()
		if not line:
			continue
		bets.append(parse_bet_slip(line))
	return bets
