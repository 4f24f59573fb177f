from .base import DateRange, RecordStore, Ticker
from .frame_store import FrameStore
from .sql_store import SqlStore

__all__ = ["DateRange", "RecordStore", "Ticker", "FrameStore", "SqlStore"]
