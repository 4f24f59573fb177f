"""Column names and granularity identifiers for record frames.

A record frame is a pandas dataframe with one row per price period for one
ticker, ordered by ``date`` ascending.
"""
from __future__ import annotations

from typing import Literal, Tuple

import pandas as pd

Granularity = Literal["daily", "monday_weekly", "expiry_weekly", "monthly", "yearly"]
WeekType = Literal["monday", "expiry"]

GRANULARITIES: Tuple[str, ...] = (
    "daily",
    "monday_weekly",
    "expiry_weekly",
    "monthly",
    "yearly",
)

DATE = "date"
TICKER_ID = "ticker_id"
OHLCV_COLUMNS = ("open", "high", "low", "close", "volume", "open_interest")
RETURN_POINTS = "return_points"
RETURN_PERCENTAGE = "return_percentage"
POSITIVE = "positive"
WEEK_TYPE = "week_type"

CALENDAR_COLUMNS = (
    "year",
    "month",
    "weekday",
    "calendar_month_day",
    "calendar_year_day",
    "trading_month_day",
    "trading_year_day",
    "even_year",
    "even_month",
    "even_calendar_month_day",
    "even_calendar_year_day",
    "even_trading_month_day",
    "even_trading_year_day",
    "leap_year",
    "election_year_type",
)

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)
TRADING_WEEKDAYS = WEEKDAY_NAMES[:5]


def weekly_granularity(week_type: WeekType) -> Granularity:
    return "expiry_weekly" if week_type == "expiry" else "monday_weekly"


def week_column(week_type: WeekType, suffix: str) -> str:
    """Return the ``monday_*``/``expiry_*`` flavour of a week context column."""

    return f"{week_type}_{suffix}"


def empty_frame() -> pd.DataFrame:
    frame = pd.DataFrame(columns=[DATE, *OHLCV_COLUMNS])
    frame[DATE] = pd.to_datetime(frame[DATE])
    return frame


def has_derived_columns(frame: pd.DataFrame) -> bool:
    """Return ``True`` when calendar and return columns are already present."""

    required = {RETURN_PERCENTAGE, POSITIVE, *CALENDAR_COLUMNS}
    return required.issubset(frame.columns)


__all__ = [
    "Granularity",
    "WeekType",
    "GRANULARITIES",
    "DATE",
    "TICKER_ID",
    "OHLCV_COLUMNS",
    "RETURN_POINTS",
    "RETURN_PERCENTAGE",
    "POSITIVE",
    "WEEK_TYPE",
    "CALENDAR_COLUMNS",
    "WEEKDAY_NAMES",
    "TRADING_WEEKDAYS",
    "weekly_granularity",
    "week_column",
    "empty_frame",
    "has_derived_columns",
]
