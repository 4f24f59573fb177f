"""Synthetic price frames shared by the tests."""
from __future__ import annotations

import csv
from pathlib import Path

import pandas as pd


def make_daily(start: str, end: str, *, base: float = 100.0, step: float = 0.001) -> pd.DataFrame:
    """Business-day OHLCV frame with closes compounding by ``step`` per day."""

    dates = pd.bdate_range(start, end)
    closes = [round(base * (1 + step) ** i, 4) for i in range(len(dates))]
    return pd.DataFrame(
        {
            "date": dates,
            "open": [c - 0.5 for c in closes],
            "high": [c + 1.0 for c in closes],
            "low": [c - 1.0 for c in closes],
            "close": closes,
            "volume": [1000.0] * len(dates),
            "open_interest": [0.0] * len(dates),
        }
    )


def write_csv(path: Path, frame: pd.DataFrame, symbol: str = "TEST") -> Path:
    with path.open("w", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=["Date", "Symbol", "Open", "High", "Low", "Close", "Volume"])
        writer.writeheader()
        for row in frame.to_dict(orient="records"):
            writer.writerow(
                {
                    "Date": row["date"].strftime("%Y-%m-%d"),
                    "Symbol": symbol,
                    "Open": f"{row['open']:.4f}",
                    "High": f"{row['high']:.4f}",
                    "Low": f"{row['low']:.4f}",
                    "Close": f"{row['close']:.4f}",
                    "Volume": "1,000",
                }
            )
    return path
