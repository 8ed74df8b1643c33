from __future__ import annotations

import json

from typer.testing import CliRunner

from derby_odds.cli import app

runner = CliRunner()


def _json_line(output: str) -> dict:
	lines = [line for line in output.splitlines() if line.startswith("{")]
	assert lines, output
	return json.loads(lines[-1])


def test_cli_help():
	result = runner.invoke(app, ["--help"])
	assert result.exit_code == 0
	assert "Derby Odds" in result.stdout


def test_cli_horses():
	result = runner.invoke(app, ["horses", "--seed", "42", "--difficulty", "easy"])
	assert result.exit_code == 0, result.output
	assert "Field" in result.stdout


def test_cli_rejects_unknown_difficulty():
	result = runner.invoke(app, ["horses", "--difficulty", "insane"])
	assert result.exit_code != 0


def test_cli_odds_json():
	result = runner.invoke(app, ["odds", "--seed", "7", "--difficulty", "easy", "--trials", "500", "--json"])
	assert result.exit_code == 0, result.output
	msg = _json_line(result.stdout)
	assert msg["type"] == "result"
	assert len(msg["winOdds"]) == 8
	assert len(msg["placeOdds"]) == 8
	for key, odds in msg["quinellaOdds"]:
		a, b = (int(x) for x in key.split("-"))
		assert a < b
		assert odds >= 1.05


def test_cli_validate_blocks_bad_bets():
	result = runner.invoke(app, ["validate", "--bet", "win:1:50", "--bet", "quinella:2-2:100"])
	assert result.exit_code == 1
	assert "Minimum bet is 100 points" in result.stdout
	assert "same horse" in result.stdout


def test_cli_validate_ok():
	result = runner.invoke(app, ["validate", "--bet", "win:1:100", "--bet", "trifecta:1-2-3:100"])
	assert result.exit_code == 0, result.output
	assert "total stake 200" in result.stdout


def test_cli_bad_slip():
	result = runner.invoke(app, ["validate", "--bet", "exacta:1-2:100"])
	assert result.exit_code != 0


def test_cli_race_json():
	args = ["race", "--seed", "7", "--difficulty", "easy", "--trials", "500", "--bet", "win:1:100", "--bet", "place:2:100", "--json"]
	first = runner.invoke(app, args)
	assert first.exit_code == 0, first.output
	data = _json_line(first.stdout)
	assert data["total_stake"] == 200
	assert sorted(data["finish_order"]) == list(range(1, 9))
	assert data["net_profit"] == data["total_payout"] - 200
	second = runner.invoke(app, args)
	assert _json_line(second.stdout) == data
