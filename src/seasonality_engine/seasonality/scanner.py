"""Scan grouped statistics for runs of consecutively trending periods."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Sequence, Tuple

from ..api.schemas import ScanCriteria
from .stats import GroupedStatistics, Statistics


@dataclass(frozen=True)
class ScannerMatch:
    start_index: int
    end_index: int
    days: List[Tuple[Hashable, Statistics]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_index": self.start_index,
            "end_index": self.end_index,
            "days": [{"key": k, **s.to_dict()} for k, s in self.days],
        }


def _combine(op: str, left: bool, right: bool) -> bool:
    return (left and right) if op == "AND" else (left or right)


def _window_checks(window: Sequence[Statistics], criteria: ScanCriteria, mult: int) -> List[bool]:
    accuracy = [s.pos_accuracy if mult > 0 else s.neg_accuracy for s in window]
    return [
        all(a > criteria.min_accuracy for a in accuracy),
        sum(s.avg_return_all for s in window) * mult > criteria.min_total_pnl,
        all(s.all_count > criteria.min_sample_size for s in window),
        all(s.avg_return_all * mult > criteria.min_avg_pnl for s in window),
    ]


def window_qualifies(window: Sequence[Statistics], criteria: ScanCriteria) -> bool:
    """Return ``True`` when a trending window passes the threshold chain.

    The four checks are folded strictly left to right:
    ``op34(op23(op12(c1, c2), c3), c4)``.
    """

    mult = 1 if criteria.trend_type == "Bullish" else -1
    if not all(s.sum_return_all * mult > 0 for s in window):
        return False
    c1, c2, c3, c4 = _window_checks(window, criteria, mult)
    result = _combine(criteria.op12, c1, c2)
    result = _combine(criteria.op23, result, c3)
    return _combine(criteria.op34, result, c4)


def find_consecutive_trending_days(
    grouped: GroupedStatistics | Sequence[Tuple[Hashable, Statistics]],
    criteria: ScanCriteria,
) -> List[ScannerMatch]:
    """Return non-overlapping windows of ``criteria.consecutive_days`` entries.

    A matched window is consumed entirely, so a run of ``k * N`` qualifying
    entries yields exactly ``k`` matches.
    """

    entries = list(grouped.items()) if isinstance(grouped, dict) else list(grouped)
    n = criteria.consecutive_days
    matches: List[ScannerMatch] = []
    idx = 0
    while idx <= len(entries) - n:
        window = entries[idx : idx + n]
        if window_qualifies([s for _, s in window], criteria):
            matches.append(ScannerMatch(start_index=idx, end_index=idx + n - 1, days=window))
            idx += n
        else:
            idx += 1
    return matches


def summarise_match(symbol: str, match: ScannerMatch, trend_type: str = "Bullish") -> Dict[str, Any]:
    """Display summary of a match: key span, summed average return and mean accuracy."""

    stats = [s for _, s in match.days]
    total = sum(s.avg_return_all for s in stats)
    accuracy = [s.pos_accuracy if trend_type == "Bullish" else s.neg_accuracy for s in stats]
    return {
        "symbol": symbol,
        "start_day": match.days[0][0] if match.days else None,
        "end_day": match.days[-1][0] if match.days else None,
        "start_index": match.start_index,
        "end_index": match.end_index,
        "total_return": round(total, 4),
        "avg_accuracy": round(sum(accuracy) / len(accuracy), 2) if accuracy else 0.0,
        "days": match.to_dict()["days"],
    }


__all__ = ["ScannerMatch", "window_qualifies", "find_consecutive_trending_days", "summarise_match"]
