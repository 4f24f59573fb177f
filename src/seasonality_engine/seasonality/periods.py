"""Derive weekly, monthly and yearly tables from a daily OHLCV frame.

Each coarser table carries its own returns and calendar columns and is
joined back onto the finer tables as context (``positive_year``,
``monthly_return_percentage``, ``monday_week_number_monthly`` ...), which
lets a single granularity table answer filters about enclosing periods.
"""
from __future__ import annotations

from typing import AbstractSet, Dict, Iterable, List

import pandas as pd

from ..core.records import (
    DATE,
    POSITIVE,
    RETURN_PERCENTAGE,
    WEEK_TYPE,
    WeekType,
    week_column,
    weekly_granularity,
)
from .calendar import enrich_calendar, ensure_sorted
from .reference import ELECTION_YEARS
from .returns import compute_returns

WEEK_TYPES: tuple[WeekType, ...] = ("monday", "expiry")


def monday_week_start(dates: pd.Series) -> pd.Series:
    """Return the Monday on or before each date."""

    dates = pd.to_datetime(dates).dt.normalize()
    return dates - pd.to_timedelta(dates.dt.dayofweek, unit="D")


def expiry_week_end(dates: pd.Series) -> pd.Series:
    """Return the weekly expiry Thursday each date settles into.

    Monday to Wednesday map to the Thursday of the same week.  Thursday and
    Friday roll to the following Thursday, as do weekend dates.
    """

    dates = pd.to_datetime(dates).dt.normalize()
    ahead = (3 - dates.dt.dayofweek) % 7
    ahead = ahead.where(ahead != 0, 7)
    return dates + pd.to_timedelta(ahead, unit="D")


def aggregate_ohlcv(frame: pd.DataFrame, keys: List[str], date_column: str = DATE) -> pd.DataFrame:
    """Aggregate ``frame`` per key: first open, max high, min low, last close.

    Volume is summed and open interest taken from the last record.  The
    output ``date`` is ``date_column`` of the first record of each group.
    """

    data = frame.copy()
    for col in ("volume", "open_interest"):
        if col not in data.columns:
            data[col] = 0.0
        data[col] = data[col].fillna(0.0)
    data["_period_date"] = data[date_column]
    grouped = data.groupby(keys, sort=True)
    out = grouped.agg(
        **{
            DATE: ("_period_date", "first"),
            "open": ("open", "first"),
            "high": ("high", "max"),
            "low": ("low", "min"),
            "close": ("close", "last"),
            "volume": ("volume", "sum"),
            "open_interest": ("open_interest", "last"),
        }
    )
    return out.reset_index(drop=True).sort_values(DATE, kind="mergesort").reset_index(drop=True)


def _period_table(
    frame: pd.DataFrame,
    keys: List[str],
    election_years: AbstractSet[int],
    date_column: str = DATE,
) -> pd.DataFrame:
    table = aggregate_ohlcv(frame, keys, date_column=date_column)
    table = compute_returns(table)
    return enrich_calendar(table, election_years)


def _join_context(
    frame: pd.DataFrame,
    context: pd.DataFrame,
    on: Iterable[str],
    columns: Dict[str, str],
) -> pd.DataFrame:
    """Left-join ``columns`` (source -> target name) of ``context`` onto ``frame``."""

    keys = list(on)
    ctx = context[keys + list(columns)].rename(columns=columns)
    ctx = ctx.drop_duplicates(subset=keys, keep="last")
    out = frame.drop(columns=[c for c in columns.values() if c in frame.columns])
    out = out.merge(ctx, on=keys, how="left")
    for target in columns.values():
        if target.startswith("positive_") or target.startswith("even_"):
            out[target] = out[target].fillna(False).astype(bool)
    return out


def derive_tables(
    daily: pd.DataFrame,
    election_years: AbstractSet[int] = ELECTION_YEARS,
) -> Dict[str, pd.DataFrame]:
    """Return every granularity table derived from raw daily records.

    ``election_years`` drives the ``election_year_type`` column of each table.
    """

    base = ensure_sorted(daily)
    if base.empty:
        return {name: base.copy() for name in ("daily", "monday_weekly", "expiry_weekly", "monthly", "yearly")}
    base["year"] = base[DATE].dt.year
    base["month"] = base[DATE].dt.month

    yearly = _period_table(base, ["year"], election_years)
    yearly["positive_year"] = yearly[POSITIVE]
    yearly["yearly_return_percentage"] = yearly[RETURN_PERCENTAGE]
    year_ctx = {"positive_year": "positive_year", "yearly_return_percentage": "yearly_return_percentage"}

    monthly = _period_table(base, ["year", "month"], election_years)
    monthly["positive_month"] = monthly[POSITIVE]
    monthly["monthly_return_percentage"] = monthly[RETURN_PERCENTAGE]
    month_ctx = {"positive_month": "positive_month", "monthly_return_percentage": "monthly_return_percentage"}
    monthly = _join_context(monthly, yearly, ["year"], year_ctx)

    weekly: Dict[str, pd.DataFrame] = {}
    daily_out = enrich_calendar(compute_returns(base.drop(columns=["year", "month"])), election_years)
    for week_type in WEEK_TYPES:
        key = week_column(week_type, "week_date")
        keyed = base.copy()
        keyed[key] = monday_week_start(keyed[DATE]) if week_type == "monday" else expiry_week_end(keyed[DATE])
        table = _period_table(keyed, [key], election_years, date_column=key)
        table[key] = table[DATE]
        table[WEEK_TYPE] = week_type
        table[week_column(week_type, "week_number_monthly")] = table["trading_month_day"]
        table[week_column(week_type, "week_number_yearly")] = table["trading_year_day"]
        table[week_column("even_" + week_type, "week_number_monthly")] = table["even_trading_month_day"]
        table[week_column("even_" + week_type, "week_number_yearly")] = table["even_trading_year_day"]
        table[week_column("positive_" + week_type, "week")] = table[POSITIVE]
        table[week_column(week_type, "weekly_return_percentage")] = table[RETURN_PERCENTAGE]
        table = _join_context(table, monthly, ["year", "month"], month_ctx)
        table = _join_context(table, yearly, ["year"], year_ctx)
        weekly[weekly_granularity(week_type)] = table

        week_ctx = {
            week_column(week_type, "week_number_monthly"): week_column(week_type, "week_number_monthly"),
            week_column(week_type, "week_number_yearly"): week_column(week_type, "week_number_yearly"),
            week_column("even_" + week_type, "week_number_monthly"): week_column("even_" + week_type, "week_number_monthly"),
            week_column("even_" + week_type, "week_number_yearly"): week_column("even_" + week_type, "week_number_yearly"),
            week_column("positive_" + week_type, "week"): week_column("positive_" + week_type, "week"),
            week_column(week_type, "weekly_return_percentage"): week_column(week_type, "weekly_return_percentage"),
        }
        daily_out[key] = keyed[key].to_numpy()
        daily_out = _join_context(daily_out, table, [key], week_ctx)

    daily_out = _join_context(daily_out, monthly, ["year", "month"], month_ctx)
    daily_out = _join_context(daily_out, yearly, ["year"], year_ctx)

    return {
        "daily": daily_out,
        "monday_weekly": weekly["monday_weekly"],
        "expiry_weekly": weekly["expiry_weekly"],
        "monthly": monthly,
        "yearly": yearly,
    }


__all__ = [
    "WEEK_TYPES",
    "monday_week_start",
    "expiry_week_end",
    "aggregate_ohlcv",
    "derive_tables",
]
