"""Record store interface shared by the in-memory and SQL stores."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Protocol, Sequence

import pandas as pd

from ..core.records import DATE
from ..errors import ConfigurationError
from ..seasonality.filters import Predicate, StoreCapabilities


@dataclass(frozen=True)
class Ticker:
    id: int
    symbol: str
    name: Optional[str] = None


@dataclass(frozen=True)
class DateRange:
    """Inclusive date window, or the most recent ``last_n_days`` records."""

    start: Optional[date] = None
    end: Optional[date] = None
    last_n_days: Optional[int] = None

    def __post_init__(self) -> None:
        if self.start and self.end and self.start > self.end:
            raise ConfigurationError("start date must not be after end date")
        if self.last_n_days is not None and self.last_n_days < 1:
            raise ConfigurationError("last_n_days must be positive")

    @property
    def uses_last_n(self) -> bool:
        return bool(self.last_n_days and self.last_n_days > 0)

    def clip(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Apply the window to an ascending frame."""

        if self.uses_last_n:
            return frame.tail(self.last_n_days).reset_index(drop=True)
        mask = pd.Series(True, index=frame.index)
        if self.start is not None:
            mask &= frame[DATE] >= pd.Timestamp(self.start)
        if self.end is not None:
            mask &= frame[DATE] <= pd.Timestamp(self.end)
        return frame.loc[mask].reset_index(drop=True)


class RecordStore(Protocol):
    def resolve_ticker(self, symbol: str) -> Ticker:
        """Return the ticker for ``symbol`` or raise ``TickerNotFoundError``."""

    def symbols(self) -> List[str]:
        ...

    def capabilities(self, granularity: str) -> StoreCapabilities:
        ...

    def fetch_records(
        self,
        ticker_id: int,
        granularity: str,
        date_range: DateRange,
        predicates: Sequence[Predicate] = (),
    ) -> pd.DataFrame:
        """Return records ordered by date ascending."""


__all__ = ["Ticker", "DateRange", "RecordStore"]
