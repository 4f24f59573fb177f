import pytest

from seasonality_engine.config import get_settings, reset_settings_cache
from seasonality_engine.errors import ConfigurationError
from seasonality_engine.seasonality.reference import election_years
from seasonality_engine.seasonality.spec import normalise_symbols


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings_cache()
    yield
    reset_settings_cache()


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("MAX_SYMBOLS", "oops")
    monkeypatch.setenv("ELECTION_COUNTRY", "india")
    settings = get_settings()
    assert settings.cache_ttl_seconds == 60
    assert settings.max_symbols == 50
    assert settings.scanner_cache_ttl_seconds == 1800
    assert settings.election_country == "INDIA"
    assert get_settings() is settings


def test_unknown_country_is_rejected():
    with pytest.raises(ConfigurationError):
        election_years("election", "ATLANTIS")


def test_normalise_symbols():
    assert normalise_symbols([" nifty", "NIFTY", "bank"]) == ["NIFTY", "BANK"]
    with pytest.raises(ConfigurationError):
        normalise_symbols(["A", "B"], max_symbols=1)
