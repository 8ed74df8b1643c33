from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import json
import pandas as pd

from .models import BetValidation, Horse, OddsTable, RaceResult
from .odds import overround


@dataclass
class OddsSummary:
	horses: int
	win_overround: float
	place_overround: float
	quinella_prices: int
	trifecta_prices: int
	favourite: Optional[int]


def summarize_odds(horses: Sequence[Horse], table: OddsTable) -> OddsSummary:
	priced = [(o, h.id) for h, o in zip(horses, table.win) if o > 0]
	return OddsSummary(
		horses=len(horses),
		win_overround=round(overround(table.win), 6),
		place_overround=round(overround(table.place), 6),
		quinella_prices=len(table.quinella),
		trifecta_prices=len(table.trifecta),
		favourite=min(priced)[1] if priced else None,
	)


def print_field(horses: Sequence[Horse], table: Optional[OddsTable] = None, show_ratings: bool = True) -> None:
	from rich.console import Console  # type: ignore
	from rich.table import Table  # type: ignore

	console = Console()
	console.rule("Field")
	columns = ["#", "Horse"]
	if show_ratings:
		columns.append("Rating")
	if table is not None:
		columns += ["Win", "Place"]
	t = Table(*columns)
	for i, h in enumerate(horses):
		row = [str(h.id), f"[{h.color}]{h.name}[/]"]
		if show_ratings:
			row.append(f"{h.rating:.1f}")
		if table is not None:
			row += [_fmt_odds(table.win[i]), _fmt_odds(table.place[i])]
		t.add_row(*row)
	console.print(t)


def print_odds_report(horses: Sequence[Horse], table: OddsTable, top: int = 10) -> None:
	from rich.console import Console  # type: ignore
	from rich.table import Table  # type: ignore

	print_field(horses, table)
	console = Console()
	console.rule("Shortest exotics")
	t = Table("Market", "Combination", "Odds")
	for key, odds in sorted(table.quinella.items(), key=lambda kv: kv[1])[:top]:
		t.add_row("Quinella", str(key), _fmt_odds(odds))
	for key, odds in sorted(table.trifecta.items(), key=lambda kv: kv[1])[:top]:
		t.add_row("Trifecta", str(key), _fmt_odds(odds))
	console.print(t)
	summary = summarize_odds(horses, table)
	console.print(
		f"Win book {summary.win_overround * 100:.1f}% | "
		f"{summary.quinella_prices} quinella / {summary.trifecta_prices} trifecta prices"
	)


def print_validation(validation: BetValidation) -> None:
	from rich.console import Console  # type: ignore

	console = Console()
	for err in validation.errors:
		console.print(f"[red]{err}[/]")


def print_race_result(horses: Sequence[Horse], result: RaceResult) -> None:
	from rich.console import Console  # type: ignore
	from rich.table import Table  # type: ignore

	names = {h.id: h.name for h in horses}
	console = Console()
	console.rule("Result")
	finish = Table("Pos", "Horse")
	for pos, horse_id in enumerate(result.finish_order[:5], start=1):
		finish.add_row(str(pos), f"{horse_id} {names.get(horse_id, '')}")
	console.print(finish)

	console.rule("Bets")
	t = Table("Type", "Horses", "Stake", "Odds", "Won", "Payout")
	for p in result.payouts:
		t.add_row(
			p.bet.type.value,
			"-".join(str(h) for h in p.bet.horses),
			str(p.bet.stake),
			_fmt_odds(p.odds),
			"yes" if p.won else "no",
			str(p.payout),
		)
	console.print(t)
	colour = "green" if result.net_profit >= 0 else "red"
	console.print(f"Stake {result.total_stake} | Payout {result.total_payout} | Net [{colour}]{result.net_profit:+d}[/]")


def _fmt_odds(odds: float) -> str:
	return f"{odds:.2f}" if odds > 0 else "-"


def write_artifacts(outdir: str | Path, horses: Sequence[Horse], table: OddsTable) -> OddsSummary:
	Path(outdir).mkdir(parents=True, exist_ok=True)
	rows: List[Dict[str, object]] = []
	for i, h in enumerate(horses):
		rows.append(
			{
				"id": h.id,
				"name": h.name,
				"rating": h.rating,
				"win_odds": round(table.win[i], 4),
				"place_odds": round(table.place[i], 4),
			}
		)
	pd.DataFrame(rows).to_csv(Path(outdir) / "win_place.csv", index=False)

	exotic_rows = [{"market": "quinella", "key": str(k), "odds": round(o, 4)} for k, o in sorted(table.quinella.items())]
	exotic_rows += [{"market": "trifecta", "key": str(k), "odds": round(o, 4)} for k, o in sorted(table.trifecta.items())]
	pd.DataFrame(exotic_rows, columns=["market", "key", "odds"]).to_csv(Path(outdir) / "exotics.csv", index=False)

	summary = summarize_odds(horses, table)
	(Path(outdir) / "summary.json").write_text(json.dumps(asdict(summary), indent=2), encoding="utf-8")
	return summary
