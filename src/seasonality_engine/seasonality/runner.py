"""Top-level orchestration for seasonality analyses.

Every analysis follows the same pipeline: resolve the ticker, split the
filters into store-level and residual predicates against the store's
capabilities, fetch, derive calendar and return columns when the store does
not persist them, apply the residual predicates, then aggregate.  Final
payloads are JSON-safe and memoised in the result cache.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import orjson
import pandas as pd

from ..api.schemas import (
    AnalysisRequest,
    ErrorResponse,
    HistoricTrendRequest,
    RangeRequest,
    ScannerRequest,
    ScenarioRequest,
    TrendingStreakRequest,
)
from ..cache import ResultCache, dumps, make_cache_key
from ..config import Settings, get_settings
from ..core.records import (
    DATE,
    RETURN_PERCENTAGE,
    WeekType,
    has_derived_columns,
    week_column,
    weekly_granularity,
)
from ..errors import ConfigurationError, SeasonalityError, TickerNotFoundError
from ..store.base import RecordStore, Ticker
from . import filters, overlay, scanner, scenario, stats
from .calendar import enrich_calendar
from .periods import derive_tables
from .reference import election_years
from .returns import compute_returns, cumulative_chart
from .spec import NormalisedRequest, normalise_request

logger = logging.getLogger(__name__)

Timeframe = str  # "daily" | "weekly" | "monthly" | "yearly"

TABLE_COLUMNS = (
    DATE,
    "open",
    "high",
    "low",
    "close",
    "volume",
    "return_points",
    RETURN_PERCENTAGE,
    "weekday",
    "calendar_month_day",
    "trading_month_day",
    "positive",
)

_GROUP_KEYS = {
    "daily": "weekday",
    "monthly": "month",
    "yearly": "year",
}

_AGGREGATE_FIELDS = {
    "TradingMonthDay": "trading_month_day",
    "TradingYearDay": "trading_year_day",
    "CalendarMonthDay": "calendar_month_day",
    "CalendarYearDay": "calendar_year_day",
    "Weekday": "weekday",
    "Month": "month",
    "Year": "year",
}


def aggregate_column(field: str, week_type: WeekType = "monday") -> str:
    if field == "WeekNumberMonthly":
        return week_column(week_type, "week_number_monthly")
    if field == "WeekNumberYearly":
        return week_column(week_type, "week_number_yearly")
    return _AGGREGATE_FIELDS[field]


def _json_safe(payload: Any) -> Any:
    return orjson.loads(dumps(payload))


def table_rows(frame: pd.DataFrame, columns=TABLE_COLUMNS) -> List[Dict[str, Any]]:
    """Per-record display rows with dates as ISO strings and nulls as ``None``."""

    if frame.empty:
        return []
    cols = [c for c in columns if c in frame.columns]
    view = frame[cols].copy()
    view[DATE] = view[DATE].dt.strftime("%Y-%m-%d")
    view = view.astype(object).where(pd.notna(view), None)
    return view.to_dict(orient="records")


class SeasonalityService:
    def __init__(
        self,
        store: RecordStore,
        cache: Optional[ResultCache] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.settings = settings or get_settings()
        self.election_years = election_years("election", self.settings.election_country)
        self.modi_years = election_years("modi", self.settings.election_country)

    # ------------------------------------------------------------------
    # cache plumbing

    def _cached(
        self,
        prefix: str,
        request: RangeRequest,
        ttl: int,
        compute: Callable[[], Dict[str, Any]],
    ) -> Dict[str, Any]:
        key = make_cache_key(prefix, request.model_dump(mode="json"))
        if self.cache is not None:
            hit = self.cache.get(key)
            if hit is not None:
                logger.info("Cache hit for %s", prefix)
                if isinstance(hit, dict):
                    hit.setdefault("meta", {})["from_cache"] = True
                return hit
        result = _json_safe(compute())
        if self.cache is not None:
            self.cache.set(key, result, ttl)
        return result

    # ------------------------------------------------------------------
    # loading

    def _derive(self, frame: pd.DataFrame, granularity: str) -> pd.DataFrame:
        if has_derived_columns(frame):
            return frame
        if granularity == "daily":
            return derive_tables(frame, self.election_years)["daily"]
        return enrich_calendar(compute_returns(frame), self.election_years)

    def load_records(
        self,
        ticker: Ticker,
        granularity: str,
        req: NormalisedRequest,
        week_type: Optional[WeekType] = None,
    ) -> Tuple[pd.DataFrame, filters.FilterPlan]:
        """Fetch, derive and filter the records of one ticker."""

        caps = self.store.capabilities(granularity)
        plan = filters.plan_filters(req.filters, granularity, caps, week_type, self.election_years)
        frame = self.store.fetch_records(ticker.id, granularity, req.date_range, plan.store_predicates)
        frame = self._derive(frame, granularity)
        frame = filters.apply_predicates(frame, plan.residual_predicates)
        if req.election_year_type and req.election_year_type != "All":
            frame = filters.apply_predicates(
                frame,
                [
                    filters.ElectionYearIs(
                        req.election_year_type,
                        election_years=self.election_years,
                        modi_years=self.modi_years,
                    )
                ],
            )
        return frame, plan

    def _for_each_symbol(
        self,
        req: NormalisedRequest,
        fn: Callable[[Ticker], Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Run ``fn`` per symbol; with several symbols, failures become error entries."""

        if len(req.symbols) == 1:
            return fn(self.store.resolve_ticker(req.symbols[0]))
        results: Dict[str, Any] = {}
        for symbol in req.symbols:
            try:
                results[symbol] = fn(self.store.resolve_ticker(symbol))
            except TickerNotFoundError as exc:
                logger.warning("Skipping unknown symbol %s", symbol)
                results[symbol] = ErrorResponse.from_exception(exc).to_dict()
            except SeasonalityError as exc:
                logger.warning("Analysis failed for %s: %s", symbol, exc)
                results[symbol] = ErrorResponse.from_exception(exc).to_dict()
        return {"results": results}

    # ------------------------------------------------------------------
    # analyses

    def _payload(
        self,
        ticker: Ticker,
        timeframe: str,
        frame: pd.DataFrame,
        plan: filters.FilterPlan,
        started: float,
        group_key: Optional[str],
        aggregate: Optional[Tuple[str, str]] = None,
    ) -> Dict[str, Any]:
        returns = frame[RETURN_PERCENTAGE].tolist() if not frame.empty else []
        grouped = stats.group_and_calculate_stats(frame, group_key) if group_key else {}
        payload: Dict[str, Any] = {
            "symbol": ticker.symbol,
            "timeframe": timeframe,
            "statistics": stats.frame_statistics(frame).to_dict(),
            "chart_data": cumulative_chart(frame),
            "table_data": table_rows(frame),
            "data_table": stats.generate_data_table(grouped),
            "max_consecutive": stats.calculate_max_consecutive(returns).to_dict(),
            "meta": {
                "records_analyzed": int(len(frame)),
                "processing_time_ms": round((time.perf_counter() - started) * 1000, 2),
                "filters_applied": plan.describe(),
                "from_cache": False,
            },
        }
        if aggregate is not None:
            column, agg_type = aggregate
            payload["aggregate_field"] = column
            payload["aggregate_type"] = agg_type
            payload["aggregate_data"] = stats.calculate_aggregate_by_field(frame, column, agg_type)
        if frame.empty:
            payload["meta"]["no_data"] = True
        return payload

    def analyze(self, request: AnalysisRequest, timeframe: Timeframe = "daily") -> Dict[str, Any]:
        """Seasonality analysis for ``timeframe`` (daily, weekly, monthly or yearly)."""

        if timeframe not in ("daily", "weekly", "monthly", "yearly"):
            raise ConfigurationError(f"Unknown timeframe: {timeframe}")
        req = normalise_request(request, self.settings.max_symbols)
        week_type: WeekType = request.week_type or (
            request.filters.week_filters.week_type if request.filters.week_filters else "monday"
        )
        granularity = weekly_granularity(week_type) if timeframe == "weekly" else timeframe
        group_key = (
            week_column(week_type, "week_number_monthly") if timeframe == "weekly" else _GROUP_KEYS[timeframe]
        )
        aggregate = None
        if request.aggregate_type or request.aggregate_field:
            default_field = "WeekNumberMonthly" if timeframe == "weekly" else "TradingMonthDay"
            aggregate = (
                aggregate_column(request.aggregate_field or default_field, week_type),
                request.aggregate_type or "total",
            )

        def _one(ticker: Ticker) -> Dict[str, Any]:
            started = time.perf_counter()
            frame, plan = self.load_records(ticker, granularity, req, week_type)
            return self._payload(ticker, timeframe, frame, plan, started, group_key, aggregate)

        return self._cached(
            f"{timeframe}",
            request,
            self.settings.cache_ttl_seconds,
            lambda: self._for_each_symbol(req, _one),
        )

    def aggregate(self, request: AnalysisRequest) -> Dict[str, Any]:
        """Daily analysis grouped by ``aggregate_field`` (trading month day by default)."""

        if request.aggregate_field is None or request.aggregate_type is None:
            request = request.model_copy(
                update={
                    "aggregate_field": request.aggregate_field or "TradingMonthDay",
                    "aggregate_type": request.aggregate_type or "total",
                }
            )
        return self.analyze(request, "daily")

    def yearly_overlay(self, request: AnalysisRequest) -> Dict[str, Any]:
        req = normalise_request(request, self.settings.max_symbols)

        def _one(ticker: Ticker) -> Dict[str, Any]:
            started = time.perf_counter()
            frame, plan = self.load_records(ticker, "daily", req)
            return {
                "symbol": ticker.symbol,
                "overlay_type": request.overlay_type,
                "years": overlay.yearly_overlay(frame, request.overlay_type),
                "statistics": stats.frame_statistics(frame).to_dict(),
                "meta": {
                    "records_analyzed": int(len(frame)),
                    "processing_time_ms": round((time.perf_counter() - started) * 1000, 2),
                    "filters_applied": plan.describe(),
                    "from_cache": False,
                },
            }

        return self._cached(
            "yearly-overlay",
            request,
            self.settings.cache_ttl_seconds,
            lambda: self._for_each_symbol(req, _one),
        )

    def scan(self, request: ScannerRequest) -> Dict[str, Any]:
        """Consecutive-trend scan over trading-day-of-month statistics.

        With no symbols every symbol of the store is scanned.  Unknown
        symbols are logged and skipped.
        """

        req = normalise_request(request, require_symbols=False)
        if not req.symbols:
            req.symbols = list(self.store.symbols())
        criteria = request.criteria

        def _compute() -> Dict[str, Any]:
            started = time.perf_counter()
            matches: List[Dict[str, Any]] = []
            for symbol in req.symbols:
                try:
                    ticker = self.store.resolve_ticker(symbol)
                except TickerNotFoundError:
                    logger.warning("Scanner skipping unknown symbol %s", symbol)
                    continue
                frame, _ = self.load_records(ticker, "daily", req)
                if frame.empty:
                    continue
                grouped = stats.group_and_calculate_stats(frame, "trading_month_day")
                for match in scanner.find_consecutive_trending_days(stats.sorted_items(grouped), criteria):
                    matches.append(scanner.summarise_match(ticker.symbol, match, criteria.trend_type))
            matches.sort(key=lambda m: abs(m["total_return"]), reverse=True)
            return {
                "matches": matches,
                "meta": {
                    "symbols_scanned": len(req.symbols),
                    "processing_time_ms": round((time.perf_counter() - started) * 1000, 2),
                    "from_cache": False,
                },
            }

        return self._cached("scanner", request, self.settings.scanner_cache_ttl_seconds, _compute)

    def scenario(self, request: ScenarioRequest) -> Dict[str, Any]:
        """Day-to-day trade scenario; identical entry and exit days are rejected up front."""

        scenario.expected_day_gap(request.entry_day, request.exit_day)
        req = normalise_request(request, max_symbols=1)
        params = scenario.ScenarioParams(
            entry_day=request.entry_day,
            exit_day=request.exit_day,
            entry_type=request.entry_type,
            exit_type=request.exit_type,
            trade_type=request.trade_type,
            return_type=request.return_type,
        )

        def _one(ticker: Ticker) -> Dict[str, Any]:
            frame, _ = self.load_records(ticker, "daily", req)
            return {"symbol": ticker.symbol, **scenario.scenario_summary(frame, params)}

        return self._cached(
            "scenario",
            request,
            self.settings.cache_ttl_seconds,
            lambda: self._for_each_symbol(req, _one),
        )

    def historic_trend(self, request: HistoricTrendRequest) -> Dict[str, Any]:
        req = normalise_request(request, max_symbols=1)

        def _one(ticker: Ticker) -> Dict[str, Any]:
            frame, _ = self.load_records(ticker, "daily", req)
            result = scenario.historic_trend(
                frame, request.trend_type, request.consecutive_days, request.day_range
            )
            return {"symbol": ticker.symbol, "historic_trend": result}

        return self._cached(
            "historic-trend",
            request,
            self.settings.cache_ttl_seconds,
            lambda: self._for_each_symbol(req, _one),
        )

    def trending_streaks(self, request: TrendingStreakRequest) -> Dict[str, Any]:
        req = normalise_request(request, max_symbols=1)

        def _one(ticker: Ticker) -> Dict[str, Any]:
            frame, _ = self.load_records(ticker, "daily", req)
            streaks = scenario.trending_streaks(
                frame, request.min_length, request.direction, request.threshold
            )
            return {"symbol": ticker.symbol, "streaks": streaks}

        return self._cached(
            "trending-streak",
            request,
            self.settings.cache_ttl_seconds,
            lambda: self._for_each_symbol(req, _one),
        )


__all__ = ["SeasonalityService", "aggregate_column", "table_rows", "TABLE_COLUMNS"]
