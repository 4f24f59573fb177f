import pandas as pd

from seasonality_engine.seasonality import periods
from seasonality_engine.store import DateRange, FrameStore


def _dates(*values):
    return pd.Series(pd.to_datetime(list(values)))


def test_monday_week_start():
    out = periods.monday_week_start(_dates("2024-01-03", "2024-01-07", "2024-01-08"))
    assert [d.strftime("%Y-%m-%d") for d in out] == ["2024-01-01", "2024-01-01", "2024-01-08"]


def test_expiry_week_end_rolls_thursday_and_friday():
    out = periods.expiry_week_end(_dates("2024-01-01", "2024-01-03", "2024-01-04", "2024-01-05"))
    assert [d.strftime("%Y-%m-%d") for d in out] == ["2024-01-04", "2024-01-04", "2024-01-11", "2024-01-11"]


def test_aggregate_ohlcv():
    frame = pd.DataFrame(
        {
            "date": pd.bdate_range("2024-01-01", periods=3),
            "open": [1.0, 2.0, 3.0],
            "high": [5.0, 9.0, 4.0],
            "low": [0.5, 0.2, 0.9],
            "close": [1.5, 2.5, 3.5],
            "volume": [10.0, None, 5.0],
        }
    )
    frame["key"] = 1
    out = periods.aggregate_ohlcv(frame, ["key"])
    row = out.iloc[0]
    assert (row["open"], row["high"], row["low"], row["close"]) == (1.0, 9.0, 0.2, 3.5)
    assert row["volume"] == 15.0
    assert row["date"] == pd.Timestamp("2024-01-01")


def test_derive_tables(daily_2024):
    tables = periods.derive_tables(daily_2024)
    assert set(tables) == {"daily", "monday_weekly", "expiry_weekly", "monthly", "yearly"}

    monthly = tables["monthly"]
    assert len(monthly) == 12
    jan = daily_2024[daily_2024["date"].dt.month == 1]
    assert monthly.loc[0, "open"] == jan["open"].iloc[0]
    assert monthly.loc[0, "close"] == jan["close"].iloc[-1]
    assert monthly.loc[0, "return_percentage"] == 0.0
    assert bool(monthly.loc[1, "positive_month"])
    assert len(tables["yearly"]) == 1

    daily = tables["daily"]
    assert len(daily) == len(daily_2024)
    for column in (
        "positive_year",
        "monthly_return_percentage",
        "monday_week_number_monthly",
        "expiry_week_number_yearly",
        "positive_monday_week",
        "even_expiry_week_number_monthly",
    ):
        assert column in daily.columns
    by_date = daily.set_index("date")
    assert by_date.loc[pd.Timestamp("2024-01-01"), "monday_week_number_monthly"] == 1
    assert by_date.loc[pd.Timestamp("2024-01-08"), "monday_week_number_monthly"] == 2
    # February days of the week starting Monday 29 January belong to January's fifth week
    assert by_date.loc[pd.Timestamp("2024-02-01"), "monday_week_number_monthly"] == 5

    weekly = tables["monday_weekly"]
    assert set(weekly["week_type"]) == {"monday"}
    assert (weekly["date"].dt.dayofweek == 0).all()
    assert (tables["expiry_weekly"]["date"].dt.dayofweek == 3).all()


def test_derive_tables_empty():
    tables = periods.derive_tables(pd.DataFrame(columns=["date", "open", "high", "low", "close"]))
    assert all(t.empty for t in tables.values())


def test_derive_tables_uses_given_election_years(daily_2024):
    default = periods.derive_tables(daily_2024)
    assert set(default["daily"]["election_year_type"]) == {"Election"}

    tables = periods.derive_tables(daily_2024, frozenset({2025}))
    for name, table in tables.items():
        assert set(table["election_year_type"]) == {"PreElection"}, name

    store = FrameStore.from_frames({"TEST": daily_2024}, election_years=frozenset({2023}))
    rows = store.fetch_records(store.resolve_ticker("TEST").id, "monthly", DateRange(), [])
    assert set(rows["election_year_type"]) == {"PostElection"}
