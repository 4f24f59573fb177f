"""Period returns and compounded cumulative series."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..core.records import DATE, POSITIVE, RETURN_PERCENTAGE, RETURN_POINTS
from .calendar import ensure_sorted


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def period_return(previous_close: Any, close: Any) -> tuple[Optional[float], Optional[float]]:
    """Return ``(points, percentage)`` between two closes.

    The percentage is undefined (``None``) when the prior close is zero;
    both values are ``None`` when either close is missing.
    """

    if _is_missing(previous_close) or _is_missing(close):
        return None, None
    points = round(float(close) - float(previous_close), 2)
    if float(previous_close) == 0:
        return points, None
    pct = (float(close) - float(previous_close)) / float(previous_close) * 100
    return points, round(pct, 4)


def compute_returns(frame: pd.DataFrame, close_column: str = "close") -> pd.DataFrame:
    """Return a copy of ``frame`` with return and sign columns.

    The first record of the series has zero returns.
    """

    out = ensure_sorted(frame)
    closes = out[close_column].tolist() if close_column in out.columns else [None] * len(out)
    points: List[Optional[float]] = []
    pcts: List[Optional[float]] = []
    for idx, close in enumerate(closes):
        if idx == 0:
            points.append(0.0)
            pcts.append(0.0)
            continue
        pts, pct = period_return(closes[idx - 1], close)
        points.append(pts)
        pcts.append(pct)
    out[RETURN_POINTS] = pd.Series(points, index=out.index, dtype="float64")
    out[RETURN_PERCENTAGE] = pd.Series(pcts, index=out.index, dtype="float64")
    out[POSITIVE] = out[RETURN_PERCENTAGE].fillna(0.0) > 0
    return out


def cumulative_series(returns: Iterable[Any], start: float = 100.0) -> List[float]:
    """Compound percentage ``returns`` from ``start``; missing values count as 0."""

    value = float(start)
    out: List[float] = []
    for r in returns:
        pct = 0.0 if _is_missing(r) else float(r)
        value = value * (1 + pct / 100)
        out.append(value)
    return out


def cumulative_chart(frame: pd.DataFrame, start: float = 100.0) -> List[Dict[str, Any]]:
    """Return chart points ``{date, return_percentage, cumulative}`` for ``frame``."""

    if frame.empty:
        return []
    values = frame[RETURN_PERCENTAGE].tolist()
    cumulative = cumulative_series(values, start=start)
    points: List[Dict[str, Any]] = []
    for date, pct, cum in zip(frame[DATE], values, cumulative):
        points.append(
            {
                "date": pd.Timestamp(date).date().isoformat(),
                "return_percentage": None if _is_missing(pct) else float(pct),
                "cumulative": round(cum, 4),
            }
        )
    return points


__all__ = ["period_return", "compute_returns", "cumulative_series", "cumulative_chart"]
