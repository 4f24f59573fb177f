import json
from datetime import date

from seasonality_engine.core import dataset


def test_parse_date_formats():
    assert dataset.parse_date("2024-01-05") == date(2024, 1, 5)
    assert dataset.parse_date("05-01-2024") == date(2024, 1, 5)
    assert dataset.parse_date("05/01/2024") == date(2024, 1, 5)
    assert dataset.parse_date("2024-01-05T09:15:00") == date(2024, 1, 5)
    assert dataset.parse_date("2024-02-30") is None
    assert dataset.parse_date("1899-12-31") is None
    assert dataset.parse_date("yesterday") is None
    assert dataset.parse_date("") is None


def test_parse_number():
    assert dataset.parse_number("1,234.5") == 1234.5
    assert dataset.parse_number(7) == 7.0
    assert dataset.parse_number("n/a") is None
    assert dataset.parse_number(None) is None


def test_parse_price_rows_partial_success():
    rows = [
        {"Date": "2024-01-03", "Open": "10", "High": "11", "Low": "9", "Close": "10.5", "Volume": "", "OI": "5"},
        {"Date": "bad", "Open": "10", "High": "11", "Low": "9", "Close": "10.5"},
        {"Date": "2024-01-02", "Open": "10", "High": "11", "Low": "9", "Close": "oops", "Volume": "1,000"},
    ]
    frame, report = dataset.parse_price_rows(rows)
    assert (report.total, report.parsed, report.skipped) == (3, 2, 1)
    assert report.error_count == 2
    assert [e["row"] for e in report.errors] == [2, 3]
    assert frame["date"].dt.strftime("%Y-%m-%d").tolist() == ["2024-01-02", "2024-01-03"]
    assert frame["close"].isna().tolist() == [True, False]
    assert frame["volume"].tolist() == [1000.0, 0.0]
    assert frame["open_interest"].tolist() == [0.0, 5.0]


def test_load_prices_csv_and_json(tmp_path):
    csv_path = tmp_path / "prices.csv"
    csv_path.write_text("timestamp,ticker,open,high,low,close\n2024-01-02,abc,1,2,0.5,1.5\n")
    frame, report = dataset.load_prices(csv_path)
    assert report.parsed == 1
    assert frame["symbol"].tolist() == ["ABC"]

    json_path = tmp_path / "prices.json"
    json_path.write_text(json.dumps({"rows": [{"date": "2024-01-02", "close": 1.5}]}))
    frame, report = dataset.load_prices(json_path)
    assert frame["close"].tolist() == [1.5]
    assert report.error_count == 0
