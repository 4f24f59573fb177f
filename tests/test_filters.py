from datetime import date

import pandas as pd
import pytest

from seasonality_engine.api import schemas
from seasonality_engine.errors import ConfigurationError
from seasonality_engine.seasonality import filters
from seasonality_engine.seasonality.periods import derive_tables
from seasonality_engine.store import DateRange, FrameStore


def _years_frame(*years):
    return pd.DataFrame({"date": pd.to_datetime([f"{y}-03-01" for y in years])})


def test_empty_config_builds_no_predicates():
    assert filters.build_predicates(None) == []
    assert filters.build_predicates(schemas.FilterConfig()) == []
    config = schemas.FilterConfig(year_filters=schemas.YearFilters(), day_filters=schemas.DayFilters())
    assert filters.build_predicates(config) == []


def test_decade_digit_ten_means_zero():
    config = schemas.FilterConfig(year_filters=schemas.YearFilters(decade_years=[10]))
    preds = filters.build_predicates(config)
    assert preds == [filters.YearDigitIn(frozenset({10}))]
    out = filters.apply_predicates(_years_frame(2019, 2020, 2021), preds)
    assert out["date"].dt.year.tolist() == [2020]


def test_year_filters():
    frame = _years_frame(2019, 2020, 2023, 2024)
    leap = filters.build_predicates(
        schemas.FilterConfig(year_filters=schemas.YearFilters(even_odd_years="Leap"))
    )
    assert filters.apply_predicates(frame, leap)["date"].dt.year.tolist() == [2020, 2024]
    election = filters.build_predicates(
        schemas.FilterConfig(year_filters=schemas.YearFilters(even_odd_years="Election"))
    )
    assert filters.apply_predicates(frame, election)["date"].dt.year.tolist() == [2019, 2024]
    assert "election year" in election[0].describe()
    specific = filters.build_predicates(
        schemas.FilterConfig(year_filters=schemas.YearFilters(specific_years=[2024, 2023, 2024]))
    )
    assert specific == [filters.ColumnIn("year", (2023, 2024))]
    frame["year"] = frame["date"].dt.year
    assert filters.apply_predicates(frame, specific)["date"].dt.year.tolist() == [2023, 2024]


def test_monday_filter_uses_iso_weekday():
    frame = pd.DataFrame({"date": pd.to_datetime(["2024-01-07", "2024-01-08", "2024-01-09"])})
    config = schemas.FilterConfig(day_filters=schemas.DayFilters(weekdays=["Monday"]))
    preds = filters.build_predicates(config)
    assert preds == [filters.WeekdayIn(("Monday",))]
    out = filters.apply_predicates(frame, preds)
    assert out["date"].tolist() == [pd.Timestamp("2024-01-08")]


def test_categories_outside_granularity_are_ignored():
    config = schemas.FilterConfig(
        day_filters=schemas.DayFilters(positive_negative_days="Positive"),
        week_filters=schemas.WeekFilters(specific_week_monthly=2),
    )
    assert filters.build_predicates(config, "monthly") == []
    assert filters.build_predicates(config, "daily") == [
        filters.ColumnEquals("monday_week_number_monthly", 2),
        filters.ColumnEquals("positive", True),
    ]
    expiry = filters.build_predicates(config, "expiry_weekly")
    assert expiry == [filters.ColumnEquals("expiry_week_number_monthly", 2)]
    with pytest.raises(ConfigurationError):
        filters.build_predicates(config, "hourly")


def test_outlier_range_keeps_missing_values():
    rng = schemas.PercentageRange(enabled=True, min=-1, max=1)
    config = schemas.FilterConfig(outlier_filters=schemas.OutlierFilters(daily_percentage_range=rng))
    preds = filters.build_predicates(config, "daily")
    assert preds == [filters.ColumnRange("return_percentage", -1.0, 1.0)]
    frame = pd.DataFrame({"return_percentage": [0.5, 2.0, None, -1.0]})
    out = filters.apply_predicates(frame, preds)
    assert out["return_percentage"].isna().sum() == 1
    assert len(out) == 3


def test_percentage_range_rejects_inverted_bounds():
    with pytest.raises(ValueError):
        schemas.PercentageRange(enabled=True, min=2, max=1)


def test_missing_column_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        filters.ColumnEquals("positive_month", True).mask(pd.DataFrame({"date": []}))


def test_election_year_types():
    frame = _years_frame(2018, 2019, 2020, 2021, 2023, 2026)
    def years(kind):
        pred = filters.ElectionYearIs(kind, current_year=2026)
        return filters.apply_predicates(frame, [pred])["date"].dt.year.tolist()

    assert years("Election") == [2019]
    assert years("PreElection") == [2018, 2023]
    assert years("PostElection") == [2020]
    assert years("MidElection") == [2021, 2026]
    assert years("Modi") == [2018, 2019, 2020, 2021, 2023, 2026]
    assert years("Current") == [2026]
    out = filters.filter_by_election_year_type(frame, "Current", today=date(2023, 6, 1))
    assert out["date"].dt.year.tolist() == [2023]
    assert filters.filter_by_election_year_type(frame, "All") is frame


def test_plan_splits_by_capabilities():
    config = schemas.FilterConfig(
        year_filters=schemas.YearFilters(decade_years=[4]),
        day_filters=schemas.DayFilters(positive_negative_days="Positive", weekdays=["Monday", "Friday"]),
    )
    caps = filters.StoreCapabilities(frozenset({"positive", "weekday"}))
    plan = filters.plan_filters(config, "daily", caps)
    assert plan.store_predicates == [
        filters.ColumnEquals("positive", True),
        filters.WeekdayIn(("Monday", "Friday")),
    ]
    assert plan.residual_predicates == [filters.YearDigitIn(frozenset({4}))]
    assert len(plan.describe()) == 3

    bare = filters.plan_filters(config, "daily", filters.StoreCapabilities())
    assert bare.store_predicates == []
    assert len(bare.residual_predicates) == 3


def test_placement_does_not_change_results(daily_two_years):
    config = schemas.FilterConfig(
        year_filters=schemas.YearFilters(decade_years=[4]),
        month_filters=schemas.MonthFilters(even_odd_months="Even"),
        day_filters=schemas.DayFilters(weekdays=["Tuesday", "Thursday"], even_odd_trading_days_monthly="Odd"),
    )
    store = FrameStore.from_frames({"TEST": daily_two_years})
    ticker = store.resolve_ticker("test")
    plan = filters.plan_filters(config, "daily", store.capabilities("daily"))
    assert plan.store_predicates

    pushed = store.fetch_records(ticker.id, "daily", DateRange(), plan.store_predicates)
    pushed = filters.apply_predicates(pushed, plan.residual_predicates)
    in_memory = filters.apply_predicates(derive_tables(daily_two_years)["daily"], plan.predicates)

    assert not pushed.empty
    assert pushed["date"].tolist() == in_memory["date"].tolist()
    assert set(pushed["weekday"]) == {"Tuesday", "Thursday"}
    assert set(pushed["year"]) == {2024}
    assert (pushed["month"] % 2 == 0).all()


def test_column_predicates_construct():
    eq = filters.ColumnEquals("month", 3)
    rng = filters.ColumnRange("return_percentage", -2.0, 2.0)
    years = filters.ColumnIn("year", (2023,))
    assert (eq.column, eq.value) == ("month", 3)
    assert (rng.min, rng.max, rng.keep_missing) == (-2.0, 2.0, True)
    caps = filters.StoreCapabilities(frozenset({"month", "year"}))
    assert caps.supports(eq)
    assert caps.supports(years)
    assert not caps.supports(rng)
    assert not caps.supports(filters.LeapYear())


def test_specific_years_are_pushed_when_year_is_stored(daily_two_years):
    config = schemas.FilterConfig(year_filters=schemas.YearFilters(specific_years=[2023]))
    store = FrameStore.from_frames({"TEST": daily_two_years})
    plan = filters.plan_filters(config, "daily", store.capabilities("daily"))
    assert plan.store_predicates == [filters.ColumnIn("year", (2023,))]
    assert plan.residual_predicates == []
    rows = store.fetch_records(store.resolve_ticker("TEST").id, "daily", DateRange(), plan.store_predicates)
    assert set(rows["year"]) == {2023}
