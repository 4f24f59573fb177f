import json

import pytest
from typer.testing import CliRunner

from seasonality_engine.cli.main import app

from prices import make_daily, write_csv

runner = CliRunner()


@pytest.fixture
def dataset(tmp_path):
    return write_csv(tmp_path / "prices.csv", make_daily("2023-01-02", "2024-12-31"))


def _json(result):
    return json.loads(result.stdout.strip().splitlines()[-1])


def test_cli_analyze(dataset):
    result = runner.invoke(app, ["analyze", "--symbol", "TEST", "--data", str(dataset), "--timeframe", "monthly"])
    assert result.exit_code == 0, result.output
    body = _json(result)
    assert body["symbol"] == "TEST"
    assert len(body["data_table"]) == 12


def test_cli_filters_file(dataset, tmp_path):
    filters = tmp_path / "filters.json"
    filters.write_text(json.dumps({"yearFilters": {"specificYears": [2023]}}))
    result = runner.invoke(app, ["analyze", "--symbol", "TEST", "--data", str(dataset), "--filters", str(filters)])
    assert result.exit_code == 0, result.output
    assert {row["date"][:4] for row in _json(result)["table_data"]} == {"2023"}


def test_cli_scan_and_scenario(dataset):
    result = runner.invoke(
        app,
        ["scan", "--data", str(dataset), "--min-accuracy", "0", "--min-total-pnl", "0", "--min-sample-size", "0"],
    )
    assert result.exit_code == 0, result.output
    assert _json(result)["matches"]

    result = runner.invoke(
        app,
        ["scenario", "trades", "--symbol", "TEST", "--data", str(dataset), "--entry-day", "Monday", "--exit-day", "Friday"],
    )
    assert result.exit_code == 0, result.output
    assert _json(result)["trade_count"] > 0


def test_cli_errors(dataset):
    result = runner.invoke(app, ["analyze", "--symbol", "NOPE", "--data", str(dataset)])
    assert result.exit_code == 1
    result = runner.invoke(
        app,
        ["scenario", "trades", "--symbol", "TEST", "--data", str(dataset), "--entry-day", "Monday", "--exit-day", "Monday"],
    )
    assert result.exit_code == 2
