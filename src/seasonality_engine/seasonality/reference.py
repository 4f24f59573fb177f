"""Static reference tables: national election years and related year sets.

The tables are built once at import time and exposed read-only.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Literal, Mapping

from ..errors import ConfigurationError

YearCategory = Literal["election", "modi"]

_ELECTION_YEARS: Mapping[str, FrozenSet[int]] = MappingProxyType(
    {
        "INDIA": frozenset(
            {
                1952, 1957, 1962, 1967, 1971, 1977, 1980, 1984, 1989,
                1991, 1996, 1998, 1999, 2004, 2009, 2014, 2019, 2024,
            }
        ),
    }
)

_MODI_YEARS: Mapping[str, FrozenSet[int]] = MappingProxyType(
    {"INDIA": frozenset(range(2014, 2027))}
)

_TABLES: Mapping[str, Mapping[str, FrozenSet[int]]] = MappingProxyType(
    {"election": _ELECTION_YEARS, "modi": _MODI_YEARS}
)


def election_years(category: YearCategory = "election", country: str = "INDIA") -> FrozenSet[int]:
    """Return the year set for ``category`` in ``country``."""

    try:
        table = _TABLES[category]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown year category: {category}") from exc
    years = table.get(country.upper())
    if years is None:
        raise ConfigurationError(f"No {category} years for country {country!r}")
    return years


ELECTION_YEARS = election_years("election")
MODI_YEARS = election_years("modi")


__all__ = ["YearCategory", "ELECTION_YEARS", "MODI_YEARS", "election_years"]
