import pandas as pd

from seasonality_engine.seasonality.overlay import yearly_overlay
from seasonality_engine.seasonality.returns import compute_returns


def test_yearly_overlay_restarts_each_year():
    frame = compute_returns(
        pd.DataFrame(
            {
                "date": pd.to_datetime(["2023-12-28", "2023-12-29", "2024-01-02", "2024-01-03"]),
                "close": [100.0, 110.0, 121.0, 108.9],
            }
        )
    )
    out = yearly_overlay(frame, "CalendarDays")
    assert sorted(out) == [2023, 2024]
    assert [p["cumulative"] for p in out[2023]] == [100.0, 110.0]
    assert [p["cumulative"] for p in out[2024]] == [110.0, 99.0]
    assert out[2024][0]["day"] == 2

    trading = yearly_overlay(frame, "TradingDays")
    assert [p["day"] for p in trading[2024]] == [1, 2]
    assert yearly_overlay(frame.iloc[0:0]) == {}
