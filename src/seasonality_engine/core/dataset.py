"""Dataset loading utilities.

Price datasets are CSV or JSON files with one row per trading day.  Column
headers are matched case-insensitively (``Date``, ``Open``, ``OI`` ...).
Parsing is partial-success: an unparseable numeric field becomes null
(volume and open interest default to 0), a row with an unparseable date is
dropped, and every problem is counted in a :class:`ParseReport`.
"""
from __future__ import annotations

import csv
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .records import DATE, OHLCV_COLUMNS

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 100

_HEADER_ALIASES = {
    "date": "date",
    "timestamp": "date",
    "datetime": "date",
    "symbol": "symbol",
    "ticker": "symbol",
    "open": "open",
    "high": "high",
    "low": "low",
    "close": "close",
    "volume": "volume",
    "openinterest": "open_interest",
    "open_interest": "open_interest",
    "oi": "open_interest",
}

_DMY = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_YMD = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


@dataclass
class ParseReport:
    total: int = 0
    parsed: int = 0
    skipped: int = 0
    error_count: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def record(self, row: int, message: str) -> None:
        self.error_count += 1
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append({"row": row, "error": message})


def _normalise_header(name: str) -> str:
    key = name.strip().lower().replace(" ", "").replace("-", "_")
    return _HEADER_ALIASES.get(key, _HEADER_ALIASES.get(key.replace("_", ""), key))


def _valid(y: int, m: int, d: int) -> Optional[date]:
    if not 1900 <= y <= 2100:
        return None
    try:
        return date(y, m, d)
    except ValueError:
        return None


def parse_date(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD``, ``DD-MM-YYYY``, ``DD/MM/YYYY`` or ISO timestamps."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    match = _YMD.match(text)
    if match:
        y, m, d = (int(g) for g in match.groups())
        return _valid(y, m, d)
    match = _DMY.match(text)
    if match:
        d, m, y = (int(g) for g in match.groups())
        return _valid(y, m, d)
    if "T" in text or " " in text:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        return _valid(parsed.year, parsed.month, parsed.day)
    return None


def parse_number(value: Any) -> Optional[float]:
    """Parse a number, tolerating thousands separators; ``None`` on failure."""

    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return None if pd.isna(value) else float(value)
    text = str(value).replace(",", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def parse_price_rows(rows: Iterable[Dict[str, Any]]) -> Tuple[pd.DataFrame, ParseReport]:
    """Convert raw rows into a record frame sorted by symbol then date."""

    report = ParseReport()
    records: List[Dict[str, Any]] = []
    for idx, raw in enumerate(rows, start=1):
        report.total += 1
        row = {_normalise_header(str(k)): v for k, v in raw.items() if k is not None}
        day = parse_date(row.get("date"))
        if day is None:
            report.skipped += 1
            report.record(idx, f"Invalid or missing date: {row.get('date')!r}")
            continue
        rec: Dict[str, Any] = {DATE: pd.Timestamp(day)}
        symbol = row.get("symbol")
        if symbol not in (None, ""):
            rec["symbol"] = str(symbol).strip().upper()
        for col in OHLCV_COLUMNS:
            raw_value = row.get(col)
            value = parse_number(raw_value)
            if value is None and raw_value not in (None, ""):
                report.record(idx, f"Invalid {col}: {raw_value!r}")
            if value is None and col in ("volume", "open_interest"):
                value = 0.0
            rec[col] = value
        records.append(rec)
        report.parsed += 1

    if report.error_count:
        logger.warning(
            "Parsed %d/%d rows with %d field errors (%d rows skipped)",
            report.parsed,
            report.total,
            report.error_count,
            report.skipped,
        )
    if not records:
        return pd.DataFrame(columns=[DATE, *OHLCV_COLUMNS]), report
    frame = pd.DataFrame.from_records(records)
    for col in OHLCV_COLUMNS:
        frame[col] = frame[col].astype("float64")
    sort_cols = ["symbol", DATE] if "symbol" in frame.columns else [DATE]
    frame = frame.sort_values(sort_cols, kind="mergesort").reset_index(drop=True)
    return frame, report


def load_price_rows(path: str | Path) -> List[Dict[str, Any]]:
    """Read raw rows from a CSV or JSON file."""

    p = Path(path)
    if p.suffix.lower() == ".json":
        with p.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if isinstance(data, dict):
            data = data.get("rows") or data.get("data") or []
        return list(data)
    with p.open("r", newline="", encoding="utf-8-sig") as fh:
        return list(csv.DictReader(fh))


def load_prices(path: str | Path) -> Tuple[pd.DataFrame, ParseReport]:
    """Load and parse a price dataset file."""

    return parse_price_rows(load_price_rows(path))


__all__ = [
    "ParseReport",
    "parse_date",
    "parse_number",
    "parse_price_rows",
    "load_price_rows",
    "load_prices",
]
