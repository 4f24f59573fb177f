"""Exception types raised by the seasonality engine.

Only resolution failures and nonsensical configuration are raised.  Per-record
data problems degrade to nulls or dropped rows instead.
"""
from __future__ import annotations


class SeasonalityError(Exception):
    """Base class for errors surfaced to callers."""


class TickerNotFoundError(SeasonalityError, LookupError):
    def __init__(self, symbol: str) -> None:
        super().__init__(f"Ticker not found: {symbol}")
        self.symbol = symbol


class ConfigurationError(SeasonalityError, ValueError):
    """A request whose parameters cannot produce a meaningful result."""


__all__ = ["SeasonalityError", "TickerNotFoundError", "ConfigurationError"]
