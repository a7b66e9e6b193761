"""Small robust-statistics helpers shared by the detection stages."""

import statistics
from datetime import date
from typing import Hashable, List, Sequence, TypeVar

T = TypeVar("T", bound=Hashable)


def day_intervals(dates: Sequence[date]) -> List[int]:
    """Days between consecutive dates."""
    return [(later - earlier).days for earlier, later in zip(dates, dates[1:])]


def median(values: Sequence[float]) -> float:
    return float(statistics.median(values))


def median_absolute_deviation(values: Sequence[float], center: float) -> float:
    return median([abs(value - center) for value in values])


def sample_variance(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return float(statistics.variance(values))


def most_common(values: Sequence[T]) -> T:
    """
    Most frequent value; ties go to the value seen first.
    """
    counts = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1

    best = values[0]
    best_count = 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count
    return best


def months_spanned(first: date, last: date) -> float:
    return (last - first).days / 30
