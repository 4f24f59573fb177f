"""Utilities to normalise analysis requests."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from ..api.schemas import FilterConfig, RangeRequest
from ..errors import ConfigurationError
from ..store.base import DateRange


@dataclass
class NormalisedRequest:
    symbols: List[str]
    date_range: DateRange
    filters: FilterConfig
    election_year_type: str


def normalise_symbols(symbols: Sequence[str], max_symbols: int | None = None) -> List[str]:
    out: List[str] = []
    for sym in symbols:
        name = sym.strip().upper()
        if name and name not in out:
            out.append(name)
    if max_symbols is not None and len(out) > max_symbols:
        raise ConfigurationError(f"At most {max_symbols} symbols may be requested")
    return out


def normalise_request(
    request: RangeRequest,
    max_symbols: int | None = None,
    require_symbols: bool = True,
) -> NormalisedRequest:
    """Convert the Pydantic request into python-native objects."""

    symbols = normalise_symbols(request.all_symbols(), max_symbols)
    if require_symbols and not symbols:
        raise ConfigurationError("At least one symbol is required")
    date_range = DateRange(
        start=request.start_date,
        end=request.end_date,
        last_n_days=request.last_n_days,
    )
    return NormalisedRequest(
        symbols=symbols,
        date_range=date_range,
        filters=request.filters,
        election_year_type=request.election_year_type,
    )


__all__ = ["NormalisedRequest", "normalise_symbols", "normalise_request"]
