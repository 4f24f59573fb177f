"""Synchronous analysis helpers and their FastAPI wrappers.

The helpers take a validated request, run it through the shared
:class:`~seasonality_engine.seasonality.runner.SeasonalityService` and map
engine errors onto HTTP errors.  Endpoints are plain ``def`` functions, so
FastAPI runs the CPU-bound analyses in its worker threadpool.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException

from ..cache import build_cache
from ..config import configure_logging, get_settings
from ..errors import ConfigurationError, TickerNotFoundError
from ..seasonality.reference import election_years
from ..seasonality.runner import SeasonalityService
from ..store import FrameStore, SqlStore
from . import schemas

logger = logging.getLogger(__name__)

_service: Optional[SeasonalityService] = None


def _build_service() -> SeasonalityService:
    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.db_dsn:
        store = SqlStore.from_url(settings.db_dsn, echo=settings.db_echo)
    elif settings.dataset_path:
        store = FrameStore.from_file(
            settings.dataset_path, election_years=election_years("election", settings.election_country)
        )
    else:
        raise HTTPException(status_code=500, detail="No data source configured (DB_DSN or SEASONALITY_DATASET)")
    return SeasonalityService(store, cache=build_cache(settings), settings=settings)


def get_service() -> SeasonalityService:
    global _service
    if _service is None:
        _service = _build_service()
    return _service


def set_service(service: Optional[SeasonalityService]) -> None:
    """Install (or clear) the service used by the helpers; mainly for tests."""

    global _service
    _service = service


def _run(fn, *args) -> Any:
    try:
        return fn(*args)
    except TickerNotFoundError as exc:
        logger.info("Unknown ticker requested: %s", exc.symbol)
        raise HTTPException(status_code=404, detail=schemas.ErrorResponse.from_exception(exc).to_dict()) from exc
    except ConfigurationError as exc:
        logger.info("Rejected request: %s", exc)
        raise HTTPException(status_code=400, detail=schemas.ErrorResponse.from_exception(exc).to_dict()) from exc


# ---------------------------------------------------------------------------
# Helpers


def daily_analysis(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return _run(get_service().analyze, request, "daily")


def daily_aggregate(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return _run(get_service().aggregate, request)


def weekly_analysis(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return _run(get_service().analyze, request, "weekly")


def monthly_analysis(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return _run(get_service().analyze, request, "monthly")


def yearly_analysis(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return _run(get_service().analyze, request, "yearly")


def yearly_overlay(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return _run(get_service().yearly_overlay, request)


def scanner(request: schemas.ScannerRequest) -> Dict[str, Any]:
    return _run(get_service().scan, request)


def scenario(request: schemas.ScenarioRequest) -> Dict[str, Any]:
    return _run(get_service().scenario, request)


def historic_trend(request: schemas.HistoricTrendRequest) -> Dict[str, Any]:
    return _run(get_service().historic_trend, request)


def trending_streaks(request: schemas.TrendingStreakRequest) -> Dict[str, Any]:
    return _run(get_service().trending_streaks, request)


def ticker(symbol: str) -> Dict[str, Any]:
    t = _run(get_service().store.resolve_ticker, symbol)
    return {"id": t.id, "symbol": t.symbol, "name": t.name}


fastapi_app = FastAPI(title="Seasonality Engine API", version="0.1.0")


@fastapi_app.post('/analysis/daily', response_model=Dict[str, Any])
def daily_endpoint(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    """Daily seasonality statistics, chart and table data."""

    return daily_analysis(request)


@fastapi_app.post('/analysis/daily/aggregate', response_model=Dict[str, Any])
def daily_aggregate_endpoint(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    """Daily returns aggregated by a calendar field."""

    return daily_aggregate(request)


@fastapi_app.post('/analysis/weekly', response_model=Dict[str, Any])
def weekly_endpoint(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    """Monday or expiry week analysis."""

    return weekly_analysis(request)


@fastapi_app.post('/analysis/monthly', response_model=Dict[str, Any])
def monthly_endpoint(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return monthly_analysis(request)


@fastapi_app.post('/analysis/yearly', response_model=Dict[str, Any])
def yearly_endpoint(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    return yearly_analysis(request)


@fastapi_app.post('/analysis/yearly-overlay', response_model=Dict[str, Any])
def yearly_overlay_endpoint(request: schemas.AnalysisRequest) -> Dict[str, Any]:
    """Compounded returns of each year aligned by day of year."""

    return yearly_overlay(request)


@fastapi_app.post('/analysis/scanner', response_model=Dict[str, Any])
def scanner_endpoint(request: schemas.ScannerRequest) -> Dict[str, Any]:
    """Scan symbols for consecutive trending trading days."""

    return scanner(request)


@fastapi_app.post('/analysis/scenario', response_model=Dict[str, Any])
def scenario_endpoint(request: schemas.ScenarioRequest) -> Dict[str, Any]:
    """Weekday entry/exit trade scenario."""

    return scenario(request)


@fastapi_app.post('/analysis/scenario/historic-trend', response_model=Dict[str, Any])
def historic_trend_endpoint(request: schemas.HistoricTrendRequest) -> Dict[str, Any]:
    return historic_trend(request)


@fastapi_app.post('/analysis/scenario/trending-streak', response_model=Dict[str, Any])
def trending_streak_endpoint(request: schemas.TrendingStreakRequest) -> Dict[str, Any]:
    return trending_streaks(request)


@fastapi_app.get('/tickers/{symbol}', response_model=Dict[str, Any])
def ticker_endpoint(symbol: str) -> Dict[str, Any]:
    """Return the ticker registered for ``symbol``."""

    return ticker(symbol)


app = fastapi_app
