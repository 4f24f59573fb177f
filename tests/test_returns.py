import pandas as pd
import pytest

from seasonality_engine.seasonality import returns


def test_period_return():
    assert returns.period_return(100, 110) == (10.0, 10.0)
    assert returns.period_return(0, 5) == (5.0, None)
    assert returns.period_return(None, 5) == (None, None)
    assert returns.period_return(100, float("nan")) == (None, None)


def test_compute_returns_first_record_is_zero():
    frame = pd.DataFrame(
        {"date": pd.bdate_range("2024-01-01", periods=4), "close": [100.0, 110.0, 99.0, 99.0]}
    )
    out = returns.compute_returns(frame)
    assert out["return_percentage"].tolist() == [0.0, 10.0, -10.0, 0.0]
    assert out["return_points"].tolist() == [0.0, 10.0, -11.0, 0.0]
    assert out["positive"].tolist() == [False, True, False, False]


def test_cumulative_series_compounds():
    assert returns.cumulative_series([10, -10]) == pytest.approx([110.0, 99.0])
    # +50% then -50% sums to zero but compounds to a loss
    assert returns.cumulative_series([50, -50])[-1] == pytest.approx(75.0)
    assert returns.cumulative_series([None, 10]) == pytest.approx([100.0, 110.0])


def test_cumulative_series_depends_on_order():
    up_first = returns.cumulative_series([10, -10])
    down_first = returns.cumulative_series([-10, 10])
    assert up_first == pytest.approx([110.0, 99.0])
    assert down_first == pytest.approx([90.0, 99.0])
    assert up_first[0] != pytest.approx(down_first[0])


def test_cumulative_chart_points():
    frame = pd.DataFrame(
        {"date": pd.bdate_range("2024-01-01", periods=2), "return_percentage": [0.0, 10.0]}
    )
    points = returns.cumulative_chart(frame)
    assert points[1] == {"date": "2024-01-02", "return_percentage": 10.0, "cumulative": 110.0}
    assert returns.cumulative_chart(frame.iloc[0:0]) == []
