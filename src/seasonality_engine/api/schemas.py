"""API request/response models.

Filter and request models accept both snake_case field names and the
camelCase keys used by browser clients (``yearFilters``, ``evenOddYears``).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

PositiveNegative = Literal["All", "Positive", "Negative"]
EvenOdd = Literal["All", "Even", "Odd"]
EvenOddYear = Literal["All", "Even", "Odd", "Leap", "Election"]
Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
WeekTypeName = Literal["monday", "expiry"]
ElectionYearFilter = Literal[
    "All", "Election", "PreElection", "PostElection", "MidElection", "Modi", "Current"
]
AggregateType = Literal["total", "avg", "max", "min"]
AggregateField = Literal[
    "TradingMonthDay",
    "TradingYearDay",
    "CalendarMonthDay",
    "CalendarYearDay",
    "Weekday",
    "WeekNumberMonthly",
    "WeekNumberYearly",
    "Month",
    "Year",
]
TrendType = Literal["Bullish", "Bearish"]
BoolOp = Literal["AND", "OR"]

ALL_WEEKDAYS: List[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        protected_namespaces=(),
    )


# ---------------------------------------------------------------------------
# Filter configuration


class YearFilters(_Model):
    positive_negative_years: PositiveNegative = "All"
    even_odd_years: EvenOddYear = "All"
    decade_years: List[int] = Field(default_factory=lambda: list(range(1, 11)))
    specific_years: Optional[List[int]] = None

    @model_validator(mode="after")
    def _check_years(self) -> "YearFilters":
        for digit in self.decade_years:
            if not 1 <= digit <= 10:
                raise ValueError("decade_years digits must be between 1 and 10")
        for year in self.specific_years or []:
            if not 1900 <= year <= 2100:
                raise ValueError("specific_years must be between 1900 and 2100")
        return self


class MonthFilters(_Model):
    positive_negative_months: PositiveNegative = "All"
    even_odd_months: EvenOdd = "All"
    specific_month: int = Field(0, ge=0, le=12)


class WeekFilters(_Model):
    week_type: WeekTypeName = "monday"
    positive_negative_weeks: PositiveNegative = "All"
    even_odd_weeks_monthly: EvenOdd = "All"
    even_odd_weeks_yearly: EvenOdd = "All"
    specific_week_monthly: int = Field(0, ge=0, le=5)


class DayFilters(_Model):
    positive_negative_days: PositiveNegative = "All"
    weekdays: List[Weekday] = Field(default_factory=lambda: list(ALL_WEEKDAYS))
    even_odd_calendar_days_monthly: EvenOdd = "All"
    even_odd_calendar_days_yearly: EvenOdd = "All"
    even_odd_trading_days_monthly: EvenOdd = "All"
    even_odd_trading_days_yearly: EvenOdd = "All"


class PercentageRange(_Model):
    enabled: bool = False
    min: float
    max: float

    @model_validator(mode="after")
    def _check_bounds(self) -> "PercentageRange":
        if self.min > self.max:
            raise ValueError("min must not exceed max")
        return self


class OutlierFilters(_Model):
    daily_percentage_range: PercentageRange = Field(
        default_factory=lambda: PercentageRange(min=-5, max=5)
    )
    weekly_percentage_range: PercentageRange = Field(
        default_factory=lambda: PercentageRange(min=-15, max=15)
    )
    monthly_percentage_range: PercentageRange = Field(
        default_factory=lambda: PercentageRange(min=-25, max=25)
    )
    yearly_percentage_range: PercentageRange = Field(
        default_factory=lambda: PercentageRange(min=-50, max=50)
    )


class FilterConfig(_Model):
    """Five independent filter categories; an absent category restricts nothing."""

    year_filters: Optional[YearFilters] = None
    month_filters: Optional[MonthFilters] = None
    week_filters: Optional[WeekFilters] = None
    day_filters: Optional[DayFilters] = None
    outlier_filters: Optional[OutlierFilters] = None


# ---------------------------------------------------------------------------
# Requests


class RangeRequest(_Model):
    symbol: Optional[str] = None
    symbols: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    last_n_days: Optional[int] = Field(None, ge=1)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    election_year_type: ElectionYearFilter = "All"

    def all_symbols(self) -> List[str]:
        names = list(self.symbols)
        if self.symbol and self.symbol not in names:
            names.insert(0, self.symbol)
        return names


class AnalysisRequest(RangeRequest):
    aggregate_type: Optional[AggregateType] = None
    aggregate_field: Optional[AggregateField] = None
    week_type: Optional[WeekTypeName] = None
    overlay_type: Literal["CalendarDays", "TradingDays"] = "CalendarDays"


class ScanCriteria(_Model):
    trend_type: TrendType = "Bullish"
    consecutive_days: int = Field(3, ge=2, le=10)
    min_accuracy: float = Field(60.0, ge=0, le=100)
    min_total_pnl: float = Field(1.5, ge=0)
    min_sample_size: int = Field(50, ge=0)
    min_avg_pnl: float = Field(0.2, ge=0)
    op12: BoolOp = "OR"
    op23: BoolOp = "OR"
    op34: BoolOp = "OR"


class ScannerRequest(RangeRequest):
    criteria: ScanCriteria = Field(default_factory=ScanCriteria)


class ScenarioRequest(RangeRequest):
    entry_day: Weekday
    exit_day: Weekday
    entry_type: Literal["Open", "Close"] = "Close"
    exit_type: Literal["Open", "Close"] = "Close"
    trade_type: Literal["Long", "Short"] = "Long"
    return_type: Literal["Percent", "Points"] = "Percent"


class HistoricTrendRequest(RangeRequest):
    trend_type: TrendType = "Bullish"
    consecutive_days: int = Field(3, ge=1, le=20)
    day_range: int = Field(10, ge=1, le=60)


class TrendingStreakRequest(RangeRequest):
    min_length: int = Field(3, ge=1, le=60)
    direction: Literal["more", "less"] = "more"
    threshold: float = 0.0


# ---------------------------------------------------------------------------
# Responses


@dataclass
class ErrorResponse:
    """Error entry returned per symbol and as the HTTP error detail."""

    error: str
    code: str

    @classmethod
    def from_exception(cls, exc: Exception) -> "ErrorResponse":
        code = "not_found" if isinstance(exc, LookupError) else "invalid_request"
        return cls(error=str(exc), code=code)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


__all__ = [
    "ALL_WEEKDAYS",
    "YearFilters",
    "MonthFilters",
    "WeekFilters",
    "DayFilters",
    "PercentageRange",
    "OutlierFilters",
    "FilterConfig",
    "RangeRequest",
    "AnalysisRequest",
    "ScanCriteria",
    "ScannerRequest",
    "ScenarioRequest",
    "HistoricTrendRequest",
    "TrendingStreakRequest",
    "ErrorResponse",
]
