import pandas as pd
import pytest

from prices import make_daily


@pytest.fixture
def daily_2024() -> pd.DataFrame:
    return make_daily("2024-01-01", "2024-12-31")


@pytest.fixture
def daily_two_years() -> pd.DataFrame:
    return make_daily("2023-01-02", "2024-12-31")
