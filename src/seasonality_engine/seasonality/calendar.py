"""Calendar attribute derivation for record frames."""
from __future__ import annotations

import logging
from typing import AbstractSet, Literal

import pandas as pd

from ..core.records import DATE, WEEKDAY_NAMES
from .reference import ELECTION_YEARS

logger = logging.getLogger(__name__)

ElectionYearType = Literal["Election", "PreElection", "PostElection", "MidElection"]


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def classify_election_year(year: int, election_years: AbstractSet[int] = ELECTION_YEARS) -> ElectionYearType:
    """Classify ``year`` relative to the election-year set."""

    if year in election_years:
        return "Election"
    if year + 1 in election_years:
        return "PreElection"
    if year - 1 in election_years:
        return "PostElection"
    return "MidElection"


def iso_weekday(dates: pd.Series) -> pd.Series:
    """Return ISO day-of-week numbers (Monday=1 .. Sunday=7)."""

    return pd.to_datetime(dates).dt.dayofweek + 1


def ensure_sorted(frame: pd.DataFrame) -> pd.DataFrame:
    """Return ``frame`` ordered by date ascending with a fresh index.

    Unsorted input is re-sorted with a stable sort and reported in the log;
    trading-day counters and returns are only meaningful over sorted data.
    """

    out = frame.copy()
    out[DATE] = pd.to_datetime(out[DATE]).dt.normalize()
    if not out[DATE].is_monotonic_increasing:
        logger.warning("Records are not sorted by date; sorting %d rows", len(out))
        out = out.sort_values(DATE, kind="mergesort")
    return out.reset_index(drop=True)


def enrich_calendar(frame: pd.DataFrame, election_years: AbstractSet[int] = ELECTION_YEARS) -> pd.DataFrame:
    """Return a copy of ``frame`` with derived calendar columns.

    Trading-day counters restart at 1 whenever the month (monthly counter)
    or the year (yearly counter) changes and advance by one per record, so
    weekends and holidays are expected to be absent from the input already.
    """

    out = ensure_sorted(frame)
    dates = out[DATE]
    out["year"] = dates.dt.year.astype(int)
    out["month"] = dates.dt.month.astype(int)
    out["weekday"] = dates.dt.dayofweek.map(lambda d: WEEKDAY_NAMES[d])
    out["calendar_month_day"] = dates.dt.day.astype(int)
    out["calendar_year_day"] = dates.dt.dayofyear.astype(int)
    out["trading_month_day"] = out.groupby(["year", "month"]).cumcount() + 1
    out["trading_year_day"] = out.groupby("year").cumcount() + 1

    out["even_year"] = out["year"] % 2 == 0
    out["even_month"] = out["month"] % 2 == 0
    out["even_calendar_month_day"] = out["calendar_month_day"] % 2 == 0
    out["even_calendar_year_day"] = out["calendar_year_day"] % 2 == 0
    out["even_trading_month_day"] = out["trading_month_day"] % 2 == 0
    out["even_trading_year_day"] = out["trading_year_day"] % 2 == 0
    out["leap_year"] = out["year"].map(is_leap_year).astype(bool)
    out["election_year_type"] = out["year"].map(lambda y: classify_election_year(int(y), election_years))
    return out


__all__ = [
    "ElectionYearType",
    "is_leap_year",
    "classify_election_year",
    "iso_weekday",
    "ensure_sorted",
    "enrich_calendar",
]
