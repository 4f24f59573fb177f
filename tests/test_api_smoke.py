import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from seasonality_engine.api import app, schemas
from seasonality_engine.cache import MemoryCache
from seasonality_engine.config import Settings, reset_settings_cache
from seasonality_engine.errors import ConfigurationError, TickerNotFoundError
from seasonality_engine.seasonality.runner import SeasonalityService
from seasonality_engine.store import FrameStore


@pytest.fixture(autouse=True)
def installed_service(daily_two_years):
    store = FrameStore.from_frames({"TEST": daily_two_years})
    app.set_service(SeasonalityService(store, cache=MemoryCache(), settings=Settings()))
    yield
    app.set_service(None)


def test_helpers():
    result = app.monthly_analysis(schemas.AnalysisRequest(symbol="TEST"))
    assert result["timeframe"] == "monthly"
    assert len(result["data_table"]) == 12
    assert app.ticker("test") == {"id": 1, "symbol": "TEST", "name": None}


def test_errors_map_to_status_codes():
    with pytest.raises(HTTPException) as missing:
        app.daily_analysis(schemas.AnalysisRequest(symbol="NOPE"))
    assert missing.value.status_code == 404
    assert missing.value.detail == {"error": "Ticker not found: NOPE", "code": "not_found"}
    with pytest.raises(HTTPException) as invalid:
        app.scenario(schemas.ScenarioRequest(symbol="TEST", entry_day="Friday", exit_day="Friday"))
    assert invalid.value.status_code == 400
    assert invalid.value.detail["code"] == "invalid_request"


def test_http_endpoints():
    client = TestClient(app.fastapi_app)
    resp = client.post(
        "/analysis/daily",
        json={"symbol": "TEST", "filters": {"dayFilters": {"weekdays": ["Friday"]}}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert {row["weekday"] for row in body["table_data"]} == {"Friday"}

    resp = client.post("/analysis/scanner", json={"criteria": {"consecutiveDays": 11}})
    assert resp.status_code == 422

    missing = client.get("/tickers/NOPE")
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "not_found"
    assert client.post("/analysis/weekly", json={"symbol": "TEST", "weekType": "expiry"}).status_code == 200


def test_missing_data_source(monkeypatch):
    app.set_service(None)
    monkeypatch.delenv("DB_DSN", raising=False)
    monkeypatch.delenv("SEASONALITY_DATASET", raising=False)
    reset_settings_cache()
    with pytest.raises(HTTPException) as exc:
        app.get_service()
    assert exc.value.status_code == 500
    reset_settings_cache()


def test_error_response_codes():
    assert schemas.ErrorResponse.from_exception(TickerNotFoundError("X")).to_dict() == {
        "error": "Ticker not found: X",
        "code": "not_found",
    }
    assert schemas.ErrorResponse.from_exception(ConfigurationError("bad")).code == "invalid_request"
