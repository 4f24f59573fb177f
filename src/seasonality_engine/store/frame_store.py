"""In-memory record store backed by pandas dataframes."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import AbstractSet, Dict, Mapping, Optional, Sequence

import pandas as pd

from ..core.dataset import load_prices
from ..errors import ConfigurationError, TickerNotFoundError
from ..seasonality.filters import Predicate, StoreCapabilities, apply_predicates
from ..seasonality.periods import derive_tables
from ..seasonality.reference import ELECTION_YEARS
from .base import DateRange, Ticker

logger = logging.getLogger(__name__)


class FrameStore:
    """Keep per-ticker granularity tables in memory.

    With ``derive=True`` every daily frame is expanded into the five
    granularity tables up front, so all derived columns are queryable.
    Otherwise only the raw daily frame is kept and callers enrich it.
    """

    def __init__(self, derive: bool = True, election_years: AbstractSet[int] = ELECTION_YEARS) -> None:
        self.derive = derive
        self.election_years = election_years
        self._tickers: Dict[str, Ticker] = {}
        self._tables: Dict[int, Dict[str, pd.DataFrame]] = {}

    # ------------------------------------------------------------------
    # construction

    @classmethod
    def from_frames(
        cls,
        frames: Mapping[str, pd.DataFrame],
        derive: bool = True,
        election_years: AbstractSet[int] = ELECTION_YEARS,
    ) -> "FrameStore":
        store = cls(derive=derive, election_years=election_years)
        for symbol, frame in frames.items():
            store.add_daily(symbol, frame)
        return store

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        symbol: Optional[str] = None,
        derive: bool = True,
        election_years: AbstractSet[int] = ELECTION_YEARS,
    ) -> "FrameStore":
        """Load a CSV/JSON dataset; rows are split by their ``symbol`` column."""

        frame, report = load_prices(path)
        logger.info("Loaded %d rows from %s (%d errors)", report.parsed, path, report.error_count)
        if "symbol" in frame.columns and symbol is None:
            frames = {
                str(sym): grp.drop(columns=["symbol"]).reset_index(drop=True)
                for sym, grp in frame.groupby("symbol", sort=True)
            }
        else:
            name = symbol or Path(path).stem
            frames = {name: frame.drop(columns=["symbol"], errors="ignore")}
        return cls.from_frames(frames, derive=derive, election_years=election_years)

    def add_daily(self, symbol: str, frame: pd.DataFrame) -> Ticker:
        key = symbol.strip().upper()
        ticker = self._tickers.get(key)
        if ticker is None:
            ticker = Ticker(id=len(self._tickers) + 1, symbol=key)
            self._tickers[key] = ticker
        if self.derive:
            tables = derive_tables(frame, self.election_years)
        else:
            tables = {"daily": frame.copy()}
        for table in tables.values():
            table["ticker_id"] = ticker.id
        self._tables[ticker.id] = tables
        return ticker

    # ------------------------------------------------------------------
    # RecordStore

    def symbols(self) -> list[str]:
        return sorted(self._tickers)

    def resolve_ticker(self, symbol: str) -> Ticker:
        ticker = self._tickers.get(symbol.strip().upper())
        if ticker is None:
            raise TickerNotFoundError(symbol)
        return ticker

    def _table(self, ticker_id: int, granularity: str) -> pd.DataFrame:
        tables = self._tables.get(ticker_id)
        if tables is None:
            raise TickerNotFoundError(str(ticker_id))
        if granularity not in tables:
            raise ConfigurationError(f"No {granularity} records are available")
        return tables[granularity]

    def capabilities(self, granularity: str) -> StoreCapabilities:
        columns = None
        for tables in self._tables.values():
            table = tables.get(granularity)
            if table is None:
                continue
            cols = frozenset(table.columns)
            columns = cols if columns is None else columns & cols
        return StoreCapabilities(columns or frozenset())

    def fetch_records(
        self,
        ticker_id: int,
        granularity: str,
        date_range: DateRange,
        predicates: Sequence[Predicate] = (),
    ) -> pd.DataFrame:
        table = self._table(ticker_id, granularity)
        if date_range.uses_last_n:
            rows = apply_predicates(table, predicates)
        else:
            rows = apply_predicates(DateRange(date_range.start, date_range.end).clip(table), predicates)
        return date_range.clip(rows) if date_range.uses_last_n else rows.copy()


__all__ = ["FrameStore"]
