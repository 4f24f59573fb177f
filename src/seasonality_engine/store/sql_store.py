"""SQL record store.

Records live in one table per granularity keyed by ``ticker_id`` and
``date``; tickers are listed in ``tickers``.  Store-level predicates are
compiled into bound-parameter ``WHERE`` clauses; which columns are
available is discovered by reflecting the tables.
"""
from __future__ import annotations

import logging
from typing import AbstractSet, Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..core.records import DATE
from ..errors import ConfigurationError, TickerNotFoundError
from ..seasonality.filters import (
    ColumnEquals,
    ColumnIn,
    ColumnRange,
    Predicate,
    StoreCapabilities,
    WeekdayIn,
)
from ..seasonality.periods import derive_tables
from ..seasonality.reference import ELECTION_YEARS
from .base import DateRange, Ticker

logger = logging.getLogger(__name__)

TICKERS_TABLE = "tickers"
TABLES = {
    "daily": "daily_seasonality_data",
    "monday_weekly": "monday_weekly_data",
    "expiry_weekly": "expiry_weekly_data",
    "monthly": "monthly_seasonality_data",
    "yearly": "yearly_seasonality_data",
}
_BOOL_PREFIXES = ("positive", "even_", "leap_year")


def _qualify_table(table: str, schema: Optional[str]) -> str:
    if "." in table:
        return table
    return f"{schema}.{table}" if schema else table


def compile_predicates(
    predicates: Sequence[Predicate],
    columns: frozenset,
) -> Tuple[List[str], Dict[str, Any]]:
    """Return SQL conditions and bound parameters for ``predicates``."""

    conditions: List[str] = []
    params: Dict[str, Any] = {}
    for i, pred in enumerate(predicates):
        col = getattr(pred, "column", None)
        if col is None or col not in columns:
            raise ConfigurationError(f"Predicate cannot be evaluated by the store: {pred.describe()}")
        if isinstance(pred, ColumnEquals):
            conditions.append(f"{col} = :p{i}")
            params[f"p{i}"] = pred.value
        elif isinstance(pred, (ColumnIn, WeekdayIn)):
            values = pred.values if isinstance(pred, ColumnIn) else pred.names
            names = [f"p{i}_{j}" for j in range(len(values))]
            conditions.append(f"{col} IN ({','.join(':' + n for n in names)})")
            params.update(dict(zip(names, values)))
        elif isinstance(pred, ColumnRange):
            clause = f"({col} >= :p{i}_lo AND {col} <= :p{i}_hi)"
            if pred.keep_missing:
                clause = f"({col} IS NULL OR {clause})"
            conditions.append(clause)
            params[f"p{i}_lo"] = pred.min
            params[f"p{i}_hi"] = pred.max
        else:
            raise ConfigurationError(f"Unsupported store predicate: {pred.describe()}")
    return conditions, params


def _coerce_types(df: pd.DataFrame) -> pd.DataFrame:
    df[DATE] = pd.to_datetime(df[DATE]).dt.normalize()
    for col in df.columns:
        if col.startswith(_BOOL_PREFIXES):
            df[col] = df[col].fillna(False).astype(bool)
    return df


class SqlStore:
    def __init__(self, engine: Engine, schema: Optional[str] = None) -> None:
        self.engine = engine
        self.schema = schema
        self._columns: Dict[str, frozenset] = {}

    @classmethod
    def from_url(cls, url: Optional[str], echo: bool = False, schema: Optional[str] = None) -> "SqlStore":
        if not url:
            raise ConfigurationError("Database URL missing (DB_DSN)")
        return cls(create_engine(url, echo=echo), schema=schema)

    # ------------------------------------------------------------------
    # RecordStore

    def resolve_ticker(self, symbol: str) -> Ticker:
        sql = f"SELECT id, symbol, name FROM {_qualify_table(TICKERS_TABLE, self.schema)} WHERE symbol = :symbol"
        with self.engine.connect() as conn:
            row = conn.execute(text(sql), {"symbol": symbol.strip().upper()}).fetchone()
        if row is None:
            raise TickerNotFoundError(symbol)
        data = dict(row._mapping)
        return Ticker(id=int(data["id"]), symbol=str(data["symbol"]), name=data.get("name"))

    def symbols(self) -> List[str]:
        sql = f"SELECT symbol FROM {_qualify_table(TICKERS_TABLE, self.schema)} ORDER BY symbol"
        with self.engine.connect() as conn:
            return [str(r[0]) for r in conn.execute(text(sql)).fetchall()]

    def _table_name(self, granularity: str) -> str:
        try:
            return TABLES[granularity]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown granularity: {granularity}") from exc

    def capabilities(self, granularity: str) -> StoreCapabilities:
        table = self._table_name(granularity)
        if table not in self._columns:
            insp = inspect(self.engine)
            if not insp.has_table(table, schema=self.schema):
                self._columns[table] = frozenset()
            else:
                cols = insp.get_columns(table, schema=self.schema)
                self._columns[table] = frozenset(c["name"] for c in cols)
        return StoreCapabilities(self._columns[table])

    def fetch_records(
        self,
        ticker_id: int,
        granularity: str,
        date_range: DateRange,
        predicates: Sequence[Predicate] = (),
    ) -> pd.DataFrame:
        table = self._table_name(granularity)
        columns = self.capabilities(granularity).columns
        if not columns:
            raise ConfigurationError(f"No {granularity} records are available")
        conditions = ["ticker_id = :ticker_id"]
        params: Dict[str, Any] = {"ticker_id": ticker_id}
        if not date_range.uses_last_n:
            if date_range.start is not None:
                conditions.append(f"{DATE} >= :start")
                params["start"] = date_range.start.isoformat()
            if date_range.end is not None:
                conditions.append(f"{DATE} <= :end")
                params["end"] = f"{date_range.end.isoformat()} 23:59:59"
        extra, extra_params = compile_predicates(predicates, columns)
        conditions.extend(extra)
        params.update(extra_params)

        order = "DESC" if date_range.uses_last_n else "ASC"
        sql = f"""
          SELECT *
          FROM {_qualify_table(table, self.schema)}
          WHERE {' AND '.join(conditions)}
          ORDER BY {DATE} {order}
        """
        if date_range.uses_last_n:
            sql += " LIMIT :limit"
            params["limit"] = int(date_range.last_n_days)
        try:
            df = pd.read_sql(text(sql), self.engine, params=params)
        except SQLAlchemyError:
            logger.exception("Record query failed for ticker %s (%s)", ticker_id, granularity)
            raise
        if date_range.uses_last_n:
            df = df.iloc[::-1].reset_index(drop=True)
        return _coerce_types(df)

    # ------------------------------------------------------------------
    # loading helpers

    def write_daily(
        self,
        symbol: str,
        frame: pd.DataFrame,
        name: Optional[str] = None,
        election_years: AbstractSet[int] = ELECTION_YEARS,
    ) -> Ticker:
        """Derive every granularity table from ``frame`` and append it."""

        key = symbol.strip().upper()
        tickers = _qualify_table(TICKERS_TABLE, self.schema)
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    f"CREATE TABLE IF NOT EXISTS {tickers} "
                    "(id INTEGER PRIMARY KEY, symbol VARCHAR(64) UNIQUE NOT NULL, name VARCHAR(255))"
                )
            )
            row = conn.execute(text(f"SELECT id FROM {tickers} WHERE symbol = :s"), {"s": key}).fetchone()
            if row is None:
                next_id = conn.execute(text(f"SELECT COALESCE(MAX(id), 0) + 1 FROM {tickers}")).scalar()
                conn.execute(
                    text(f"INSERT INTO {tickers} (id, symbol, name) VALUES (:id, :s, :n)"),
                    {"id": next_id, "s": key, "n": name},
                )
                ticker_id = int(next_id)
            else:
                ticker_id = int(row[0])
        for granularity, table in derive_tables(frame, election_years).items():
            out = table.copy()
            out["ticker_id"] = ticker_id
            out.to_sql(TABLES[granularity], self.engine, schema=self.schema, if_exists="append", index=False)
        self._columns.clear()
        logger.info("Stored %d daily rows for %s", len(frame), key)
        return Ticker(id=ticker_id, symbol=key, name=name)


__all__ = ["TABLES", "TICKERS_TABLE", "SqlStore", "compile_predicates"]
