"""Filter predicates for record frames.

A :class:`~seasonality_engine.api.schemas.FilterConfig` is translated into a
list of predicate objects.  Column predicates can be evaluated by a record
store when the store reports the column as persisted for the requested
granularity (see :class:`StoreCapabilities`); everything else is applied to
the fetched frame in memory.  Every predicate returns a boolean mask aligned
with the frame index.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import AbstractSet, Any, ClassVar, FrozenSet, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ..api.schemas import FilterConfig, OutlierFilters, PercentageRange
from ..core.records import DATE, RETURN_PERCENTAGE, TRADING_WEEKDAYS, WEEKDAY_NAMES, WeekType, week_column
from ..errors import ConfigurationError
from .calendar import is_leap_year, iso_weekday
from .reference import ELECTION_YEARS, MODI_YEARS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Predicates


def _require_column(frame: pd.DataFrame, column: str) -> pd.Series:
    if column not in frame.columns:
        raise ConfigurationError(f"Column {column!r} is not available for this record set")
    return frame[column]


def _years(frame: pd.DataFrame) -> pd.Series:
    return pd.to_datetime(frame[DATE]).dt.year


class Predicate:
    """Base class: a named boolean test over a record frame."""

    pushable: ClassVar[bool] = False

    def mask(self, frame: pd.DataFrame) -> pd.Series:  # pragma: no cover - interface
        raise NotImplementedError

    def describe(self) -> str:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass(frozen=True)
class ColumnEquals(Predicate):
    column: str
    value: Any

    pushable: ClassVar[bool] = True

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        values = _require_column(frame, self.column)
        if isinstance(self.value, bool):
            return values.fillna(False).astype(bool) == self.value
        return values == self.value

    def describe(self) -> str:
        return f"{self.column} = {self.value!r}"


@dataclass(frozen=True)
class ColumnIn(Predicate):
    column: str
    values: Tuple[Any, ...]

    pushable: ClassVar[bool] = True

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        return _require_column(frame, self.column).isin(list(self.values))

    def describe(self) -> str:
        return f"{self.column} IN {list(self.values)!r}"


@dataclass(frozen=True)
class ColumnRange(Predicate):
    """Inclusive range test; records lacking the value pass when ``keep_missing``."""

    column: str
    min: float
    max: float
    keep_missing: bool = True

    pushable: ClassVar[bool] = True

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        if self.column not in frame.columns:
            if self.keep_missing:
                return pd.Series(True, index=frame.index)
            raise ConfigurationError(f"Column {self.column!r} is not available for this record set")
        values = pd.to_numeric(frame[self.column], errors="coerce")
        inside = (values >= self.min) & (values <= self.max)
        if self.keep_missing:
            inside = inside | values.isna()
        return inside

    def describe(self) -> str:
        return f"{self.min} <= {self.column} <= {self.max}"


@dataclass(frozen=True)
class WeekdayIn(Predicate):
    """Allow-list of weekday names.

    In memory the test uses the ISO day of week of ``date`` (Monday=1,
    Sunday=7); a store evaluates it against its ``weekday`` name column.
    """

    names: Tuple[str, ...]
    column: str = "weekday"

    pushable: ClassVar[bool] = True

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        wanted = {WEEKDAY_NAMES.index(name) + 1 for name in self.names}
        return iso_weekday(frame[DATE]).isin(wanted)

    def describe(self) -> str:
        return f"weekday IN {list(self.names)!r}"


@dataclass(frozen=True)
class YearDigitIn(Predicate):
    """Keep years whose last digit is listed; digit 10 stands for 0."""

    digits: FrozenSet[int]

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        wanted = {0 if d == 10 else d for d in self.digits}
        return (_years(frame) % 10).isin(wanted)

    def describe(self) -> str:
        return f"year digit IN {sorted(self.digits)!r}"


@dataclass(frozen=True)
class LeapYear(Predicate):
    def mask(self, frame: pd.DataFrame) -> pd.Series:
        return _years(frame).map(is_leap_year).astype(bool)

    def describe(self) -> str:
        return "leap year"


@dataclass(frozen=True)
class YearIn(Predicate):
    years: FrozenSet[int]
    label: str = "year"

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        return _years(frame).isin(self.years)

    def describe(self) -> str:
        return f"{self.label} IN {sorted(self.years)!r}"


@dataclass(frozen=True)
class ElectionYearIs(Predicate):
    """Membership test for the request-level election year type."""

    kind: str
    election_years: FrozenSet[int] = ELECTION_YEARS
    modi_years: FrozenSet[int] = MODI_YEARS
    current_year: int = field(default_factory=lambda: date.today().year)

    def mask(self, frame: pd.DataFrame) -> pd.Series:
        years = _years(frame)
        elections = self.election_years
        if self.kind == "Election":
            return years.isin(elections)
        if self.kind == "PreElection":
            return (years + 1).isin(elections)
        if self.kind == "PostElection":
            return (years - 1).isin(elections)
        if self.kind == "MidElection":
            return ~(years.isin(elections) | (years + 1).isin(elections) | (years - 1).isin(elections))
        if self.kind == "Modi":
            return years.isin(self.modi_years)
        if self.kind == "Current":
            return years == self.current_year
        raise ConfigurationError(f"Unknown election year type: {self.kind}")

    def describe(self) -> str:
        return f"election year type = {self.kind}"


# ---------------------------------------------------------------------------
# Store capabilities and placement


@dataclass(frozen=True)
class StoreCapabilities:
    """Columns a record store can evaluate predicates against."""

    columns: FrozenSet[str] = frozenset()

    def supports(self, predicate: Predicate) -> bool:
        column = getattr(predicate, "column", None)
        return predicate.pushable and column is not None and column in self.columns


@dataclass
class FilterPlan:
    store_predicates: List[Predicate]
    residual_predicates: List[Predicate]

    @property
    def predicates(self) -> List[Predicate]:
        return [*self.store_predicates, *self.residual_predicates]

    def describe(self) -> List[str]:
        return [p.describe() for p in self.predicates]


def _flag(column: str, choice: str, positive: str, negative: str) -> Optional[Predicate]:
    if choice == positive:
        return ColumnEquals(column, True)
    if choice == negative:
        return ColumnEquals(column, False)
    return None


def _range(column: str, rng: PercentageRange) -> Optional[Predicate]:
    if not rng.enabled:
        return None
    return ColumnRange(column, float(rng.min), float(rng.max))


_CATEGORIES = {
    "daily": {"year", "month", "week", "day", "outlier"},
    "monday_weekly": {"year", "month", "week", "outlier"},
    "expiry_weekly": {"year", "month", "week", "outlier"},
    "monthly": {"year", "month", "outlier"},
    "yearly": {"year", "outlier"},
}


def _outlier_predicates(outliers: OutlierFilters, granularity: str, week_type: WeekType) -> List[Predicate]:
    weekly_col = week_column(week_type, "weekly_return_percentage")
    columns = {
        "daily": [
            ("daily_percentage_range", RETURN_PERCENTAGE),
            ("weekly_percentage_range", weekly_col),
            ("monthly_percentage_range", "monthly_return_percentage"),
            ("yearly_percentage_range", "yearly_return_percentage"),
        ],
        "monday_weekly": [
            ("weekly_percentage_range", RETURN_PERCENTAGE),
            ("monthly_percentage_range", "monthly_return_percentage"),
            ("yearly_percentage_range", "yearly_return_percentage"),
        ],
        "monthly": [
            ("monthly_percentage_range", RETURN_PERCENTAGE),
            ("yearly_percentage_range", "yearly_return_percentage"),
        ],
        "yearly": [("yearly_percentage_range", RETURN_PERCENTAGE)],
    }
    columns["expiry_weekly"] = columns["monday_weekly"]
    out: List[Predicate] = []
    for attr, column in columns[granularity]:
        pred = _range(column, getattr(outliers, attr))
        if pred is not None:
            out.append(pred)
    return out


def build_predicates(
    config: FilterConfig | None,
    granularity: str = "daily",
    week_type: WeekType | None = None,
    election_years: AbstractSet[int] = ELECTION_YEARS,
) -> List[Predicate]:
    """Translate ``config`` into predicates for ``granularity`` records.

    Categories that do not apply to the granularity (for example day filters
    on monthly records) are ignored.  ``week_type`` overrides the week type
    of the week filters; it selects the ``monday_*`` or ``expiry_*`` columns.
    """

    if granularity not in _CATEGORIES:
        raise ConfigurationError(f"Unknown granularity: {granularity}")
    if config is None:
        return []
    categories = _CATEGORIES[granularity]
    if week_type is None:
        if granularity == "expiry_weekly":
            week_type = "expiry"
        elif granularity == "monday_weekly":
            week_type = "monday"
        else:
            week_type = config.week_filters.week_type if config.week_filters else "monday"
    preds: List[Optional[Predicate]] = []

    yf = config.year_filters
    if yf is not None and "year" in categories:
        preds.append(_flag("positive_year", yf.positive_negative_years, "Positive", "Negative"))
        if yf.even_odd_years in ("Even", "Odd"):
            preds.append(_flag("even_year", yf.even_odd_years, "Even", "Odd"))
        elif yf.even_odd_years == "Leap":
            preds.append(LeapYear())
        elif yf.even_odd_years == "Election":
            preds.append(YearIn(frozenset(election_years), label="election year"))
        digits = frozenset(yf.decade_years)
        if digits and len(digits) < 10:
            preds.append(YearDigitIn(digits))
        if yf.specific_years:
            preds.append(ColumnIn("year", tuple(sorted(set(yf.specific_years)))))

    mf = config.month_filters
    if mf is not None and "month" in categories:
        preds.append(_flag("positive_month", mf.positive_negative_months, "Positive", "Negative"))
        preds.append(_flag("even_month", mf.even_odd_months, "Even", "Odd"))
        if mf.specific_month > 0:
            preds.append(ColumnEquals("month", mf.specific_month))

    wf = config.week_filters
    if wf is not None and "week" in categories:
        preds.append(
            _flag(week_column("positive_" + week_type, "week"), wf.positive_negative_weeks, "Positive", "Negative")
        )
        preds.append(
            _flag(week_column("even_" + week_type, "week_number_monthly"), wf.even_odd_weeks_monthly, "Even", "Odd")
        )
        preds.append(
            _flag(week_column("even_" + week_type, "week_number_yearly"), wf.even_odd_weeks_yearly, "Even", "Odd")
        )
        if wf.specific_week_monthly > 0:
            preds.append(ColumnEquals(week_column(week_type, "week_number_monthly"), wf.specific_week_monthly))

    df_ = config.day_filters
    if df_ is not None and "day" in categories:
        preds.append(_flag("positive", df_.positive_negative_days, "Positive", "Negative"))
        names = tuple(dict.fromkeys(df_.weekdays))
        if names and set(names) != set(TRADING_WEEKDAYS):
            preds.append(WeekdayIn(names))
        preds.append(_flag("even_calendar_month_day", df_.even_odd_calendar_days_monthly, "Even", "Odd"))
        preds.append(_flag("even_calendar_year_day", df_.even_odd_calendar_days_yearly, "Even", "Odd"))
        preds.append(_flag("even_trading_month_day", df_.even_odd_trading_days_monthly, "Even", "Odd"))
        preds.append(_flag("even_trading_year_day", df_.even_odd_trading_days_yearly, "Even", "Odd"))

    if config.outlier_filters is not None and "outlier" in categories:
        preds.extend(_outlier_predicates(config.outlier_filters, granularity, week_type))

    return [p for p in preds if p is not None]


def plan_filters(
    config: FilterConfig | None,
    granularity: str,
    capabilities: StoreCapabilities,
    week_type: WeekType | None = None,
    election_years: AbstractSet[int] = ELECTION_YEARS,
) -> FilterPlan:
    """Split the predicates of ``config`` into store-level and residual lists."""

    store: List[Predicate] = []
    residual: List[Predicate] = []
    for pred in build_predicates(config, granularity, week_type, election_years):
        (store if capabilities.supports(pred) else residual).append(pred)
    logger.debug(
        "Filter plan for %s: %d store predicates, %d residual",
        granularity,
        len(store),
        len(residual),
    )
    return FilterPlan(store_predicates=store, residual_predicates=residual)


def apply_predicates(frame: pd.DataFrame, predicates: Sequence[Predicate]) -> pd.DataFrame:
    """Return the rows of ``frame`` satisfying every predicate, order preserved."""

    if not predicates or frame.empty:
        return frame.reset_index(drop=True)
    keep = pd.Series(True, index=frame.index)
    for pred in predicates:
        keep &= pred.mask(frame).fillna(False).astype(bool)
    return frame.loc[keep].reset_index(drop=True)


def filter_by_election_year_type(
    frame: pd.DataFrame,
    kind: str | None,
    election_years: Iterable[int] = ELECTION_YEARS,
    today: date | None = None,
) -> pd.DataFrame:
    """Keep rows whose year matches the request-level election year type."""

    if not kind or kind == "All":
        return frame
    pred = ElectionYearIs(
        kind,
        election_years=frozenset(election_years),
        current_year=(today or date.today()).year,
    )
    return apply_predicates(frame, [pred])


__all__ = [
    "Predicate",
    "ColumnEquals",
    "ColumnIn",
    "ColumnRange",
    "WeekdayIn",
    "YearDigitIn",
    "LeapYear",
    "YearIn",
    "ElectionYearIs",
    "StoreCapabilities",
    "FilterPlan",
    "build_predicates",
    "plan_filters",
    "apply_predicates",
    "filter_by_election_year_type",
]
