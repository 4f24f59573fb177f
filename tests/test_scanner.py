from seasonality_engine.api.schemas import ScanCriteria
from seasonality_engine.seasonality import scanner
from seasonality_engine.seasonality.stats import Statistics


def _entry(avg: float, count: int = 100, accuracy: float = 80.0) -> Statistics:
    positive = avg > 0
    return Statistics(
        all_count=count,
        avg_return_all=avg,
        sum_return_all=avg * count,
        pos_count=int(count * accuracy / 100) if positive else 0,
        pos_accuracy=accuracy if positive else 0.0,
        neg_count=0 if positive else int(count * accuracy / 100),
        neg_accuracy=0.0 if positive else accuracy,
    )


def test_windows_are_consumed_without_overlap():
    grouped = {day: _entry(1.0) for day in range(1, 7)}
    matches = scanner.find_consecutive_trending_days(grouped, ScanCriteria(consecutive_days=3))
    assert [(m.start_index, m.end_index) for m in matches] == [(0, 2), (3, 5)]
    assert [k for k, _ in matches[1].days] == [4, 5, 6]


def test_wrong_direction_entry_breaks_window():
    grouped = {1: _entry(1.0), 2: _entry(-1.0), 3: _entry(1.0), 4: _entry(1.0), 5: _entry(1.0)}
    matches = scanner.find_consecutive_trending_days(grouped, ScanCriteria(consecutive_days=3))
    assert [(m.start_index, m.end_index) for m in matches] == [(2, 4)]


def test_bearish_scan():
    entries = [(d, _entry(-1.0)) for d in (1, 2)]
    bearish = ScanCriteria(trend_type="Bearish", consecutive_days=2)
    assert len(scanner.find_consecutive_trending_days(entries, bearish)) == 1
    assert scanner.find_consecutive_trending_days(entries, ScanCriteria(consecutive_days=2)) == []


def test_operators_fold_left_to_right():
    window = [_entry(1.0)] * 3
    # accuracy passes; total pnl, sample size and average pnl all fail
    base = dict(consecutive_days=3, min_accuracy=60, min_total_pnl=10, min_sample_size=500, min_avg_pnl=5)
    left_fold = ScanCriteria(op12="OR", op23="AND", op34="OR", **base)
    assert not scanner.window_qualifies(window, left_fold)
    assert scanner.window_qualifies(window, ScanCriteria(op12="OR", op23="OR", op34="OR", **base))
    assert not scanner.window_qualifies(window, ScanCriteria(op12="AND", op23="OR", op34="OR", **base))


def test_summarise_match():
    grouped = {1: _entry(1.0, accuracy=70.0), 2: _entry(2.0, accuracy=90.0)}
    match = scanner.find_consecutive_trending_days(grouped, ScanCriteria(consecutive_days=2))[0]
    summary = scanner.summarise_match("TEST", match)
    assert summary["start_day"] == 1
    assert summary["end_day"] == 2
    assert summary["total_return"] == 3.0
    assert summary["avg_accuracy"] == 80.0
    assert len(summary["days"]) == 2
