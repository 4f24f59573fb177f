"""Year-over-year overlay of compounded returns."""
from __future__ import annotations

from typing import Any, Dict, List, Literal

import pandas as pd

from ..core.records import DATE, RETURN_PERCENTAGE
from .calendar import enrich_calendar
from .returns import cumulative_series

OverlayType = Literal["CalendarDays", "TradingDays"]


def yearly_overlay(
    frame: pd.DataFrame,
    overlay_type: OverlayType = "CalendarDays",
    start: float = 100.0,
) -> Dict[int, List[Dict[str, Any]]]:
    """Per-year series aligned on calendar or trading day of year.

    Each point carries the compounded value of that year's returns starting
    from ``start``.
    """

    if frame.empty:
        return {}
    data = frame if "trading_year_day" in frame.columns else enrich_calendar(frame)
    day_col = "calendar_year_day" if overlay_type == "CalendarDays" else "trading_year_day"
    out: Dict[int, List[Dict[str, Any]]] = {}
    for year, group in data.groupby("year", sort=True):
        cumulative = cumulative_series(group[RETURN_PERCENTAGE].tolist(), start=start)
        points: List[Dict[str, Any]] = []
        for day, date, pct, cum in zip(group[day_col], group[DATE], group[RETURN_PERCENTAGE], cumulative):
            points.append(
                {
                    "day": int(day),
                    "date": pd.Timestamp(date).date().isoformat(),
                    "return_percentage": None if pd.isna(pct) else float(pct),
                    "cumulative": round(cum, 4),
                }
            )
        out[int(year)] = points
    return out


__all__ = ["OverlayType", "yearly_overlay"]
