"""Return statistics: per-sequence summaries, grouped tables and streaks."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.records import DATE, RETURN_PERCENTAGE


def _clean(values: Iterable[Any]) -> List[float]:
    """Return ``values`` as floats with missing entries counted as 0."""

    out: List[float] = []
    for v in values:
        if v is None:
            out.append(0.0)
            continue
        try:
            f = float(v)
        except (TypeError, ValueError):
            out.append(0.0)
            continue
        out.append(0.0 if math.isnan(f) else f)
    return out


def _avg(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


@dataclass(frozen=True)
class Statistics:
    all_count: int = 0
    avg_return_all: float = 0.0
    sum_return_all: float = 0.0
    pos_count: int = 0
    avg_return_pos: float = 0.0
    sum_return_pos: float = 0.0
    neg_count: int = 0
    avg_return_neg: float = 0.0
    sum_return_neg: float = 0.0
    pos_accuracy: float = 0.0
    neg_accuracy: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SummaryStatistics:
    total_count: int = 0
    positive_count: int = 0
    negative_count: int = 0
    avg_return_all: float = 0.0
    avg_return_positive: float = 0.0
    avg_return_negative: float = 0.0
    sum_return_all: float = 0.0
    sum_return_positive: float = 0.0
    sum_return_negative: float = 0.0
    cumulative_return: float = 0.0
    win_rate: float = 0.0
    max_gain: float = 0.0
    max_loss: float = 0.0
    max_drawdown: float = 0.0
    cagr: float = 0.0
    sharpe_ratio: float = 0.0
    std_dev: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MaxConsecutive:
    max_positive: int = 0
    max_negative: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


GroupedStatistics = Dict[Hashable, Statistics]


# ---------------------------------------------------------------------------
# Sequence statistics


def calculate_statistics(values: Iterable[Any]) -> Statistics:
    """Summarise a return sequence; zero is neither positive nor negative."""

    returns = _clean(values)
    if not returns:
        return Statistics()
    pos = [r for r in returns if r > 0]
    neg = [r for r in returns if r < 0]
    n = len(returns)
    return Statistics(
        all_count=n,
        avg_return_all=round(_avg(returns), 4),
        sum_return_all=round(sum(returns), 4),
        pos_count=len(pos),
        avg_return_pos=round(_avg(pos), 4),
        sum_return_pos=round(sum(pos), 4),
        neg_count=len(neg),
        avg_return_neg=round(_avg(neg), 4),
        sum_return_neg=round(sum(neg), 4),
        pos_accuracy=round(len(pos) / n * 100, 2),
        neg_accuracy=round(len(neg) / n * 100, 2),
    )


def compounded_drawdown(returns: Sequence[float]) -> tuple[float, float]:
    """Return ``(final compound factor, max drawdown %)`` for percentage returns.

    The drawdown is measured against the running peak of the compounded
    series (starting at 1) and is never positive.
    """

    cumulative = 1.0
    peak = 1.0
    max_dd = 0.0
    for r in returns:
        cumulative *= 1 + r / 100
        if cumulative > peak:
            peak = cumulative
        dd = (cumulative - peak) / peak * 100 if peak else 0.0
        if dd < max_dd:
            max_dd = dd
    return cumulative, max_dd


def population_std(returns: Sequence[float]) -> float:
    if len(returns) <= 1:
        return 0.0
    return float(np.std(np.asarray(returns, dtype="float64")))


def calculate_summary_statistics(
    values: Iterable[Any],
    dates: Optional[Iterable[Any]] = None,
) -> SummaryStatistics:
    """Extended statistics for a chronologically ordered return sequence.

    ``dates`` supplies the distinct years used as the CAGR horizon; without
    it the CAGR is 0.
    """

    returns = _clean(values)
    if not returns:
        return SummaryStatistics()
    pos = [r for r in returns if r > 0]
    neg = [r for r in returns if r < 0]
    factor, max_dd = compounded_drawdown(returns)

    years = set()
    if dates is not None:
        years = {pd.Timestamp(d).year for d in dates if d is not None and not pd.isna(d)}
    cagr = 0.0
    if years and factor > 0:
        cagr = (factor ** (1 / len(years)) - 1) * 100

    mean = _avg(returns)
    std = population_std(returns)
    sharpe = mean / std if std != 0 else 0.0
    return SummaryStatistics(
        total_count=len(returns),
        positive_count=len(pos),
        negative_count=len(neg),
        avg_return_all=round(mean, 4),
        avg_return_positive=round(_avg(pos), 4),
        avg_return_negative=round(_avg(neg), 4),
        sum_return_all=round(sum(returns), 4),
        sum_return_positive=round(sum(pos), 4),
        sum_return_negative=round(sum(neg), 4),
        cumulative_return=round((factor - 1) * 100, 2),
        win_rate=round(len(pos) / len(returns) * 100, 2),
        max_gain=round(max(max(returns), 0.0), 4),
        max_loss=round(min(min(returns), 0.0), 4),
        max_drawdown=round(max_dd, 2),
        cagr=round(cagr, 2),
        sharpe_ratio=round(sharpe, 2),
        std_dev=round(std, 4),
    )


def frame_statistics(frame: pd.DataFrame, value_column: str = RETURN_PERCENTAGE) -> SummaryStatistics:
    if frame.empty:
        return SummaryStatistics()
    return calculate_summary_statistics(frame[value_column].tolist(), frame[DATE].tolist())


def calculate_max_consecutive(values: Iterable[Any]) -> MaxConsecutive:
    """Longest strictly positive and strictly negative runs; zero breaks both."""

    max_pos = cur_pos = 0
    max_neg = cur_neg = 0
    for v in _clean(values):
        if v > 0:
            cur_pos += 1
            cur_neg = 0
            max_pos = max(max_pos, cur_pos)
        elif v < 0:
            cur_neg += 1
            cur_pos = 0
            max_neg = max(max_neg, cur_neg)
        else:
            cur_pos = cur_neg = 0
    return MaxConsecutive(max_positive=max_pos, max_negative=max_neg)


# ---------------------------------------------------------------------------
# Grouped statistics


def _native(key: Any) -> Any:
    return key.item() if hasattr(key, "item") else key


def group_and_calculate_stats(
    frame: pd.DataFrame,
    key: str,
    value_column: str = RETURN_PERCENTAGE,
) -> GroupedStatistics:
    """Statistics per distinct ``key`` in order of first appearance.

    Rows whose key is missing are skipped.
    """

    if frame.empty or key not in frame.columns:
        return {}
    groups: Dict[Hashable, List[Any]] = {}
    for k, v in zip(frame[key].tolist(), frame[value_column].tolist()):
        if k is None or (isinstance(k, float) and math.isnan(k)):
            continue
        groups.setdefault(_native(k), []).append(v)
    return {k: calculate_statistics(vals) for k, vals in groups.items()}


def _sort_key(label: Any) -> tuple:
    try:
        return (0, float(label), "")
    except (TypeError, ValueError):
        return (1, 0.0, str(label))


def sorted_items(grouped: GroupedStatistics) -> List[tuple]:
    """Grouped entries sorted numerically when keys are numbers, else lexically."""

    return sorted(grouped.items(), key=lambda item: _sort_key(item[0]))


def aggregate_value(stats: Statistics, aggregate_type: str) -> float:
    if aggregate_type == "avg":
        return stats.avg_return_all
    if aggregate_type == "max":
        return max(stats.avg_return_pos, 0.0)
    if aggregate_type == "min":
        return min(stats.avg_return_neg, 0.0)
    return stats.sum_return_all


def calculate_aggregate_by_field(
    frame: pd.DataFrame,
    field: str,
    aggregate_type: str = "total",
    value_column: str = RETURN_PERCENTAGE,
) -> List[Dict[str, Any]]:
    """One row per distinct ``field`` value with the selected aggregate as ``value``."""

    grouped = group_and_calculate_stats(frame, field, value_column)
    rows: List[Dict[str, Any]] = []
    for label, stats in sorted_items(grouped):
        row = {"label": label, "value": round(aggregate_value(stats, aggregate_type), 4)}
        row.update(stats.to_dict())
        rows.append(row)
    return rows


def generate_data_table(grouped: GroupedStatistics, sort: bool = True) -> List[Dict[str, Any]]:
    """Display rows for grouped statistics."""

    items = sorted_items(grouped) if sort else list(grouped.items())
    rows: List[Dict[str, Any]] = []
    for key, s in items:
        rows.append(
            {
                "index": key,
                "All Count": s.all_count,
                "Avg Return All": s.avg_return_all,
                "Sum Return All": s.sum_return_all,
                "Pos Count": f"{s.pos_count}({s.pos_accuracy}%)",
                "Avg Return Pos": s.avg_return_pos,
                "Sum Return Pos": s.sum_return_pos,
                "Neg Count": f"{s.neg_count}({s.neg_accuracy}%)",
                "Avg Return Neg": s.avg_return_neg,
                "Sum Return Neg": s.sum_return_neg,
            }
        )
    return rows


__all__ = [
    "Statistics",
    "SummaryStatistics",
    "MaxConsecutive",
    "GroupedStatistics",
    "calculate_statistics",
    "compounded_drawdown",
    "population_std",
    "calculate_summary_statistics",
    "frame_statistics",
    "calculate_max_consecutive",
    "group_and_calculate_stats",
    "sorted_items",
    "aggregate_value",
    "calculate_aggregate_by_field",
    "generate_data_table",
]
