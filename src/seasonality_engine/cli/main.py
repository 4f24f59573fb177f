"""Command line interface entry points."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError

from ..api import schemas
from ..config import configure_logging, get_settings
from ..errors import ConfigurationError, TickerNotFoundError
from ..seasonality.reference import election_years
from ..seasonality.runner import SeasonalityService
from ..store import FrameStore, SqlStore

logger = logging.getLogger(__name__)

app = typer.Typer()
scenario_app = typer.Typer()
app.add_typer(scenario_app, name="scenario")


def _data_option():
    return typer.Option(None, "--data", exists=True, file_okay=True, dir_okay=False, help="CSV/JSON dataset")


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, "--log-level")) -> None:
    configure_logging(log_level)


def _service(data: Optional[Path]) -> SeasonalityService:
    settings = get_settings()
    if data is not None:
        store = FrameStore.from_file(data, election_years=election_years("election", settings.election_country))
    elif settings.db_dsn:
        store = SqlStore.from_url(settings.db_dsn, echo=settings.db_echo)
    elif settings.dataset_path:
        store = FrameStore.from_file(
            settings.dataset_path, election_years=election_years("election", settings.election_country)
        )
    else:
        typer.echo("No data source: pass --data or set DB_DSN / SEASONALITY_DATASET")
        raise typer.Exit(1)
    logger.info("Using %s record store", type(store).__name__)
    return SeasonalityService(store, settings=settings)


def _load_filters(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    return json.loads(path.read_text())


def _emit(fn, *args) -> None:
    try:
        result = fn(*args)
    except TickerNotFoundError as exc:
        typer.echo(f"Not found: {exc.symbol}")
        raise typer.Exit(1)
    except (ConfigurationError, ValidationError) as exc:
        typer.echo(f"Invalid request: {exc}")
        raise typer.Exit(2)
    typer.echo(json.dumps(result, separators=(",", ":")))


def _range_payload(
    symbols: List[str],
    start: Optional[str],
    end: Optional[str],
    last_n_days: Optional[int],
    filters: Optional[Path],
    election_year_type: str,
) -> Dict[str, Any]:
    return {
        "symbols": symbols,
        "start_date": start,
        "end_date": end,
        "last_n_days": last_n_days,
        "filters": _load_filters(filters),
        "election_year_type": election_year_type,
    }


@app.command("analyze")
def analyze(
    symbol: List[str] = typer.Option(..., "--symbol"),
    timeframe: str = typer.Option("daily", "--timeframe", help="daily, weekly, monthly or yearly"),
    data: Optional[Path] = _data_option(),
    start: Optional[str] = typer.Option(None, "--start"),
    end: Optional[str] = typer.Option(None, "--end"),
    last_n_days: Optional[int] = typer.Option(None, "--last-n-days"),
    filters: Optional[Path] = typer.Option(None, "--filters", exists=True, help="FilterConfig JSON file"),
    week_type: Optional[str] = typer.Option(None, "--week-type"),
    election_year_type: str = typer.Option("All", "--election-year-type"),
) -> None:
    """Run a seasonality analysis and print the JSON result."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload(symbol, start, end, last_n_days, filters, election_year_type)
        payload["week_type"] = week_type
        request = schemas.AnalysisRequest.model_validate(payload)
        return _service(data).analyze(request, timeframe)

    _emit(_run)


@app.command("aggregate")
def aggregate(
    symbol: List[str] = typer.Option(..., "--symbol"),
    field: str = typer.Option("TradingMonthDay", "--field"),
    aggregate_type: str = typer.Option("total", "--type", help="total, avg, max or min"),
    data: Optional[Path] = _data_option(),
    start: Optional[str] = typer.Option(None, "--start"),
    end: Optional[str] = typer.Option(None, "--end"),
    filters: Optional[Path] = typer.Option(None, "--filters", exists=True),
) -> None:
    """Aggregate daily returns by a calendar field."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload(symbol, start, end, None, filters, "All")
        payload.update({"aggregate_field": field, "aggregate_type": aggregate_type})
        request = schemas.AnalysisRequest.model_validate(payload)
        return _service(data).aggregate(request)

    _emit(_run)


@app.command("overlay")
def overlay(
    symbol: str = typer.Option(..., "--symbol"),
    overlay_type: str = typer.Option("CalendarDays", "--type"),
    data: Optional[Path] = _data_option(),
    start: Optional[str] = typer.Option(None, "--start"),
    end: Optional[str] = typer.Option(None, "--end"),
) -> None:
    """Print the year-over-year overlay for one symbol."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload([symbol], start, end, None, None, "All")
        payload["overlay_type"] = overlay_type
        request = schemas.AnalysisRequest.model_validate(payload)
        return _service(data).yearly_overlay(request)

    _emit(_run)


@app.command("scan")
def scan(
    symbol: Optional[List[str]] = typer.Option(None, "--symbol", help="defaults to every symbol"),
    data: Optional[Path] = _data_option(),
    start: Optional[str] = typer.Option(None, "--start"),
    end: Optional[str] = typer.Option(None, "--end"),
    trend_type: str = typer.Option("Bullish", "--trend"),
    consecutive_days: int = typer.Option(3, "--days"),
    min_accuracy: float = typer.Option(60.0, "--min-accuracy"),
    min_total_pnl: float = typer.Option(1.5, "--min-total-pnl"),
    min_sample_size: int = typer.Option(50, "--min-sample-size"),
    min_avg_pnl: float = typer.Option(0.2, "--min-avg-pnl"),
    op12: str = typer.Option("OR", "--op12"),
    op23: str = typer.Option("OR", "--op23"),
    op34: str = typer.Option("OR", "--op34"),
) -> None:
    """Scan for consecutive trending trading days of the month."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload(list(symbol or []), start, end, None, None, "All")
        payload["criteria"] = {
            "trend_type": trend_type,
            "consecutive_days": consecutive_days,
            "min_accuracy": min_accuracy,
            "min_total_pnl": min_total_pnl,
            "min_sample_size": min_sample_size,
            "min_avg_pnl": min_avg_pnl,
            "op12": op12,
            "op23": op23,
            "op34": op34,
        }
        request = schemas.ScannerRequest.model_validate(payload)
        return _service(data).scan(request)

    _emit(_run)


@scenario_app.command("trades")
def scenario_trades(
    symbol: str = typer.Option(..., "--symbol"),
    entry_day: str = typer.Option(..., "--entry-day"),
    exit_day: str = typer.Option(..., "--exit-day"),
    data: Optional[Path] = _data_option(),
    start: Optional[str] = typer.Option(None, "--start"),
    end: Optional[str] = typer.Option(None, "--end"),
    entry_type: str = typer.Option("Close", "--entry-type"),
    exit_type: str = typer.Option("Close", "--exit-type"),
    trade_type: str = typer.Option("Long", "--trade-type"),
    return_type: str = typer.Option("Percent", "--return-type"),
) -> None:
    """Weekday entry/exit trade scenario."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload([symbol], start, end, None, None, "All")
        payload.update(
            {
                "entry_day": entry_day,
                "exit_day": exit_day,
                "entry_type": entry_type,
                "exit_type": exit_type,
                "trade_type": trade_type,
                "return_type": return_type,
            }
        )
        request = schemas.ScenarioRequest.model_validate(payload)
        return _service(data).scenario(request)

    _emit(_run)


@scenario_app.command("historic-trend")
def scenario_historic_trend(
    symbol: str = typer.Option(..., "--symbol"),
    data: Optional[Path] = _data_option(),
    trend_type: str = typer.Option("Bullish", "--trend"),
    consecutive_days: int = typer.Option(3, "--days"),
    day_range: int = typer.Option(10, "--range"),
) -> None:
    """Returns around completed streaks of trending days."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload([symbol], None, None, None, None, "All")
        payload.update({"trend_type": trend_type, "consecutive_days": consecutive_days, "day_range": day_range})
        request = schemas.HistoricTrendRequest.model_validate(payload)
        return _service(data).historic_trend(request)

    _emit(_run)


@scenario_app.command("streaks")
def scenario_streaks(
    symbol: str = typer.Option(..., "--symbol"),
    data: Optional[Path] = _data_option(),
    min_length: int = typer.Option(3, "--min-length"),
    direction: str = typer.Option("more", "--direction"),
    threshold: float = typer.Option(0.0, "--threshold"),
) -> None:
    """Runs of days with returns beyond a threshold."""

    def _run() -> Dict[str, Any]:
        payload = _range_payload([symbol], None, None, None, None, "All")
        payload.update({"min_length": min_length, "direction": direction, "threshold": threshold})
        request = schemas.TrendingStreakRequest.model_validate(payload)
        return _service(data).trending_streaks(request)

    _emit(_run)


if __name__ == "__main__":  # pragma: no cover - manual invocation
    app()
