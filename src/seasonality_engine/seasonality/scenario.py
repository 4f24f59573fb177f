"""Scenario studies over daily records.

* day-to-day trades: enter on one weekday and exit on the next occurrence of
  another weekday within the same trading week;
* historic trend: what happened around completed streaks of trending days;
* trending streaks: runs of days beyond a return threshold.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from ..core.records import DATE, RETURN_PERCENTAGE, TRADING_WEEKDAYS, WEEKDAY_NAMES
from ..errors import ConfigurationError
from .calendar import ensure_sorted
from .stats import Statistics, calculate_statistics

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class ScenarioParams:
    entry_day: str
    exit_day: str
    entry_type: Literal["Open", "Close"] = "Close"
    exit_type: Literal["Open", "Close"] = "Close"
    trade_type: Literal["Long", "Short"] = "Long"
    return_type: Literal["Percent", "Points"] = "Percent"


@dataclass(frozen=True)
class Trade:
    entry_date: str
    exit_date: str
    entry_price: float
    exit_price: float
    trade_return: Optional[float]
    year: int
    month: int


def expected_day_gap(entry_day: str, exit_day: str) -> int:
    """Calendar days from ``entry_day`` to the next ``exit_day``."""

    if entry_day not in TRADING_WEEKDAYS or exit_day not in TRADING_WEEKDAYS:
        raise ConfigurationError("Entry and exit days must be Monday to Friday")
    if entry_day == exit_day:
        raise ConfigurationError("Entry and exit day cannot be the same")
    start = TRADING_WEEKDAYS.index(entry_day) + 1
    end = TRADING_WEEKDAYS.index(exit_day) + 1
    return end - start if end > start else 7 - start + end


def _price(row: Any, kind: str) -> Any:
    return row["open"] if kind == "Open" else row["close"]


def day_to_day_trades(frame: pd.DataFrame, params: ScenarioParams) -> List[Trade]:
    """Pair each entry-day record with the following exit-day record.

    A pair is traded only when the calendar gap equals
    :func:`expected_day_gap`; weeks shortened by holidays are skipped.
    """

    gap = expected_day_gap(params.entry_day, params.exit_day)
    if frame.empty:
        return []
    data = ensure_sorted(frame)
    weekdays = data[DATE].dt.dayofweek.map(lambda d: WEEKDAY_NAMES[d])
    data = data.loc[weekdays.isin([params.entry_day, params.exit_day])].reset_index(drop=True)
    data["_weekday"] = data[DATE].dt.dayofweek.map(lambda d: WEEKDAY_NAMES[d])

    trades: List[Trade] = []
    rows = data.to_dict(orient="records")
    for entry, exit_ in zip(rows, rows[1:]):
        if entry["_weekday"] != params.entry_day:
            continue
        if (exit_[DATE] - entry[DATE]).days != gap:
            continue
        entry_price = _price(entry, params.entry_type)
        exit_price = _price(exit_, params.exit_type)
        if pd.isna(entry_price) or pd.isna(exit_price):
            continue
        value: Optional[float] = float(exit_price) - float(entry_price)
        if params.return_type == "Percent":
            value = value / float(entry_price) * 100 if float(entry_price) != 0 else None
        if value is not None and params.trade_type == "Short":
            value = -value
        trades.append(
            Trade(
                entry_date=entry[DATE].date().isoformat(),
                exit_date=exit_[DATE].date().isoformat(),
                entry_price=float(entry_price),
                exit_price=float(exit_price),
                trade_return=None if value is None else round(value, 4),
                year=entry[DATE].year,
                month=entry[DATE].month,
            )
        )
    return trades


def monthly_pivot(trades: List[Trade]) -> Dict[str, Dict[str, float]]:
    """Sum of trade returns per year and entry month plus a yearly ``Total``."""

    pivot: Dict[str, Dict[str, float]] = {}
    for t in trades:
        row = pivot.setdefault(str(t.year), {})
        label = MONTH_LABELS[t.month - 1]
        row[label] = row.get(label, 0.0) + (t.trade_return or 0.0)
    for row in pivot.values():
        total = sum(row.values())
        for label in list(row):
            row[label] = round(row[label], 4)
        row["Total"] = round(total, 4)
    return pivot


def scenario_summary(frame: pd.DataFrame, params: ScenarioParams) -> Dict[str, Any]:
    trades = day_to_day_trades(frame, params)
    stats: Statistics = calculate_statistics(t.trade_return for t in trades)
    return {
        "trades": [asdict(t) for t in trades],
        "monthly_returns": monthly_pivot(trades),
        "statistics": stats.to_dict(),
        "trade_count": len(trades),
        "params": asdict(params),
    }


# ---------------------------------------------------------------------------
# Historic trend and streaks


def _returns(frame: pd.DataFrame) -> List[float]:
    return [0.0 if pd.isna(v) else float(v) for v in frame[RETURN_PERCENTAGE].tolist()]


def trend_columns(day_range: int) -> List[str]:
    return [f"T{i}" for i in range(-day_range, 0)] + ["T"] + [f"T+{i}" for i in range(1, day_range + 1)]


def historic_trend(
    frame: pd.DataFrame,
    trend_type: str = "Bullish",
    consecutive_days: int = 3,
    day_range: int = 10,
    max_rows: int = 100,
) -> Optional[Dict[str, Any]]:
    """Returns around every completed streak of ``consecutive_days`` trending days.

    The day completing a streak is ``T``; the counter restarts after each
    completed streak.  Returns ``None`` for an empty frame.
    """

    if frame.empty:
        return None
    data = ensure_sorted(frame)
    returns = _returns(data)
    dates = [d.date().isoformat() for d in data[DATE]]

    anchors: List[int] = []
    count = 0
    for i, r in enumerate(returns):
        trending = r > 0 if trend_type == "Bullish" else r < 0
        if not trending:
            count = 0
            continue
        count += 1
        if count == consecutive_days:
            anchors.append(i)
            count = 0

    columns = trend_columns(day_range)
    offsets = list(range(-day_range, day_range + 1))
    table: List[Dict[str, Any]] = []
    for anchor in anchors:
        row: Dict[str, Any] = {"date": dates[anchor]}
        for col, off in zip(columns, offsets):
            idx = anchor + off
            row[col] = round(returns[idx], 2) if 0 <= idx < len(returns) else None
        table.append(row)

    statistics: Dict[str, Dict[str, Any]] = {}
    for col in columns:
        values = [row[col] for row in table if row[col] is not None]
        if not values:
            continue
        total = sum(values)
        statistics[col] = {
            "count": len(values),
            "positive_count": sum(1 for v in values if v > 0),
            "negative_count": sum(1 for v in values if v < 0),
            "avg_return": round(total / len(values), 4),
            "sum_return": round(total, 4),
        }

    superimposed: List[Dict[str, Any]] = []
    cumulative = 1.0
    for col in columns:
        avg = statistics.get(col, {}).get("avg_return", 0.0)
        cumulative *= 1 + avg / 100
        superimposed.append({"day": col, "value": round((cumulative - 1) * 100, 2)})

    return {
        "trend_type": trend_type,
        "consecutive_days": consecutive_days,
        "day_range": day_range,
        "columns": columns,
        "table_data": table[:max_rows],
        "statistics": statistics,
        "superimposed_returns": superimposed,
        "total_occurrences": len(anchors),
    }


def trending_streaks(
    frame: pd.DataFrame,
    min_length: int = 5,
    direction: Literal["more", "less"] = "less",
    threshold: float = 0.0,
) -> List[Dict[str, Any]]:
    """Runs of at least ``min_length`` days with returns beyond ``threshold``.

    ``more`` requires returns strictly above the threshold, ``less`` strictly
    below it.
    """

    if frame.empty:
        return []
    data = ensure_sorted(frame)
    returns = _returns(data)
    closes = data["close"].tolist()
    dates = [d.date().isoformat() for d in data[DATE]]

    streaks: List[Dict[str, Any]] = []
    start: Optional[int] = None

    def _close_streak(end: int) -> None:
        length = end - start + 1
        if length < min_length:
            return
        start_close = closes[start]
        change = None
        if start_close and not pd.isna(start_close) and not pd.isna(closes[end]):
            change = round((closes[end] - start_close) / start_close * 100, 2)
        streaks.append(
            {
                "start_date": dates[start],
                "start_close": start_close,
                "end_date": dates[end],
                "end_close": closes[end],
                "total_days": length,
                "percent_change": change,
            }
        )

    for i, r in enumerate(returns):
        meets = r > threshold if direction == "more" else r < threshold
        if meets:
            if start is None:
                start = i
            continue
        if start is not None:
            _close_streak(i - 1)
            start = None
    if start is not None:
        _close_streak(len(returns) - 1)
    return streaks


__all__ = [
    "MONTH_LABELS",
    "ScenarioParams",
    "Trade",
    "expected_day_gap",
    "day_to_day_trades",
    "monthly_pivot",
    "scenario_summary",
    "trend_columns",
    "historic_trend",
    "trending_streaks",
]
