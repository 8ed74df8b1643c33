from __future__ import annotations

from typing import List, Optional, Tuple

import json
import typer
from rich.progress import Progress

from .config import DIFFICULTY_CONFIGS, AppConfig, coerce_seed
from .logging_utils import get_logger
from .models import Bet, EstimateProgress, Horse, OddsTable, RaceConfig
from .montecarlo import default_batch_size, estimate
from .odds import calculate_odds_table, odds_message
from .parser import parse_bet_file, parse_bet_slips
from .payout import resolve, validate_bets
from .race import generate_horses, simulate
from .reporting import print_field, print_odds_report, print_race_result, print_validation, write_artifacts

app = typer.Typer(help="Derby Odds: seeded horse races with parimutuel-style odds")
logger = get_logger(__name__)


def _load_config(
	config_path: Optional[str],
	difficulty: Optional[str],
	horses: Optional[int],
	trials: Optional[int],
	batch_size: Optional[int] = None,
	bankroll: Optional[int] = None,
) -> AppConfig:
	config = AppConfig.load(config_path)
	if difficulty:
		if difficulty.lower() not in DIFFICULTY_CONFIGS:
			raise typer.BadParameter(f"unknown difficulty {difficulty!r}; choose from {', '.join(DIFFICULTY_CONFIGS)}")
		config.difficulty = difficulty.lower()  # type: ignore[assignment]
	if horses is not None:
		config.num_horses = horses
	if trials is not None:
		config.monte_carlo_trials = trials
	if batch_size is not None:
		config.batch_size = batch_size
	if bankroll is not None:
		config.initial_bankroll = bankroll
	return config


def _collect_bets(slips: Optional[List[str]], bets_file: Optional[str]) -> List[Bet]:
	try:
		bets = parse_bet_slips(list(slips or []))
		if bets_file:
			bets += parse_bet_file(bets_file)
	except ValueError as e:
		raise typer.BadParameter(str(e))
	return bets


def _build_odds(config: AppConfig, race: RaceConfig, horses: List[Horse], quiet: bool = False) -> OddsTable:
	trials = config.monte_carlo_trials
	batch = config.batch_size or default_batch_size(trials)
	final = None
	with Progress(disable=quiet) as progress:
		task = progress.add_task("Simulating", total=trials)
		for event in estimate(horses, race, trials, batch):
			if isinstance(event, EstimateProgress):
				progress.update(task, completed=event.completed_trials)
			else:
				final = event
	return calculate_odds_table(horses, race, final, config.floor_odds)


def _setup(config: AppConfig, seed: Optional[str]) -> Tuple[RaceConfig, List[Horse]]:
	race = config.race_config(coerce_seed(seed) if seed is not None else None)
	return race, generate_horses(race)


@app.command()
def horses(
	seed: Optional[str] = typer.Option(None, "--seed", help="Race seed (int or text)"),
	config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
	difficulty: Optional[str] = typer.Option(None, "--difficulty", help="easy, standard or hard"),
	num_horses: Optional[int] = typer.Option(None, "--horses", help="Override field size"),
):
	config = _load_config(config_path, difficulty, num_horses, None)
	race, field = _setup(config, seed)
	logger.info("Field for seed %s (%s)", race.seed, race.difficulty)
	print_field(field)


@app.command()
def odds(
	seed: Optional[str] = typer.Option(None, "--seed", help="Race seed (int or text)"),
	config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
	difficulty: Optional[str] = typer.Option(None, "--difficulty", help="easy, standard or hard"),
	num_horses: Optional[int] = typer.Option(None, "--horses", help="Override field size"),
	trials: Optional[int] = typer.Option(None, "--trials", help="Monte Carlo trials"),
	batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Trials per progress batch"),
	top: int = typer.Option(10, "--top", help="Exotic prices to list per market"),
	as_json: bool = typer.Option(False, "--json", help="Print the odds as a result message"),
	outdir: Optional[str] = typer.Option(None, "--outdir", help="Write CSV/JSON artifacts here"),
):
	config = _load_config(config_path, difficulty, num_horses, trials, batch_size)
	race, field = _setup(config, seed)
	table = _build_odds(config, race, field, quiet=as_json)
	if as_json:
		typer.echo(json.dumps(odds_message(table)))
	else:
		print_odds_report(field, table, top=top)
	if outdir:
		summary = write_artifacts(outdir, field, table)
		logger.info("Artifacts written to %s (win book %.3f)", outdir, summary.win_overround)


@app.command()
def validate(
	bet: Optional[List[str]] = typer.Option(None, "--bet", help="Bet slip TYPE:HORSES:STAKE, repeatable"),
	bets_file: Optional[str] = typer.Option(None, "--bets-file", help="File with one bet slip per line"),
	config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
	bankroll: Optional[int] = typer.Option(None, "--bankroll", help="Bankroll to validate against"),
):
	config = _load_config(config_path, None, None, None, bankroll=bankroll)
	bets = _collect_bets(bet, bets_file)
	validation = validate_bets(bets, config.initial_bankroll, config.max_bet_percentage, config.min_bet)
	if not validation.valid:
		print_validation(validation)
		raise typer.Exit(code=1)
	typer.echo(f"{len(bets)} bet(s) OK, total stake {sum(b.stake for b in bets)}")


@app.command()
def race(
	bet: Optional[List[str]] = typer.Option(None, "--bet", help="Bet slip TYPE:HORSES:STAKE, repeatable"),
	bets_file: Optional[str] = typer.Option(None, "--bets-file", help="File with one bet slip per line"),
	seed: Optional[str] = typer.Option(None, "--seed", help="Race seed (int or text)"),
	config_path: Optional[str] = typer.Option(None, "--config", help="Path to config.yaml"),
	difficulty: Optional[str] = typer.Option(None, "--difficulty", help="easy, standard or hard"),
	num_horses: Optional[int] = typer.Option(None, "--horses", help="Override field size"),
	trials: Optional[int] = typer.Option(None, "--trials", help="Monte Carlo trials"),
	bankroll: Optional[int] = typer.Option(None, "--bankroll", help="Bankroll to validate against"),
	as_json: bool = typer.Option(False, "--json", help="Print the race result as JSON"),
):
	config = _load_config(config_path, difficulty, num_horses, trials, bankroll=bankroll)
	bets = _collect_bets(bet, bets_file)
	validation = validate_bets(bets, config.initial_bankroll, config.max_bet_percentage, config.min_bet)
	if not validation.valid:
		print_validation(validation)
		raise typer.Exit(code=1)

	race_config, field = _setup(config, seed)
	table = _build_odds(config, race_config, field, quiet=as_json)
	finish = simulate(field, race_config)
	result = resolve(bets, finish, table)
	if as_json:
		typer.echo(result.model_dump_json())
	else:
		print_race_result(field, result)


def main():
	app()


if __name__ == "__main__":
	main()
