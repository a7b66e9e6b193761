"""
Cadence inference, date-anchor validation and next-date projection.
"""

import calendar
from datetime import date, timedelta
from typing import Optional, Sequence

from recurwatch.config import DetectionConfig
from recurwatch.models.recurring import Frequency
from recurwatch.services.detection.stats import (
    day_intervals,
    median,
    median_absolute_deviation,
    most_common,
)
from recurwatch.services.detection.types import CadenceInfo, Validation


# Inclusive median-interval bands, in days
FREQUENCY_BANDS = (
    (Frequency.weekly, 6, 8),
    (Frequency.biweekly, 12, 16),
    (Frequency.monthly, 25, 35),
    (Frequency.quarterly, 80, 100),
    (Frequency.yearly, 360, 370),
)

CUSTOM_MIN_OCCURRENCES = 4
DAYS_IN_LONGEST_MONTH = 31
DAYS_IN_WEEK = 7


def classify_interval(median_interval: float) -> Frequency:
    for frequency, low, high in FREQUENCY_BANDS:
        if low <= median_interval <= high:
            return frequency
    return Frequency.custom


def infer_cadence(
    dates: Sequence[date],
    config: DetectionConfig = DetectionConfig(),
) -> Optional[CadenceInfo]:
    """
    Infer frequency and anchor from the occurrence dates of a cluster.

    Returns None when the series is too frequent, too irregular, or (for
    custom frequencies) too short.
    """
    intervals = day_intervals(dates)
    if not intervals:
        return None
    if all(interval < config.min_interval_days for interval in intervals):
        return None

    median_interval = median(intervals)
    if median_interval < config.min_interval_days:
        return None

    mad = median_absolute_deviation(intervals, median_interval)
    if mad / median_interval > config.max_mad_ratio:
        return None

    frequency = classify_interval(median_interval)
    if frequency == Frequency.custom and len(dates) < CUSTOM_MIN_OCCURRENCES:
        return None

    anchor_day_of_month = None
    anchor_day_of_week = None
    if frequency in (Frequency.weekly, Frequency.biweekly):
        anchor_day_of_week = most_common([d.weekday() for d in dates])
    elif frequency == Frequency.monthly:
        anchor_day_of_month = most_common([d.day for d in dates])

    return CadenceInfo(
        frequency=frequency,
        median_interval_days=median_interval,
        mad=mad,
        anchor_day_of_month=anchor_day_of_month,
        anchor_day_of_week=anchor_day_of_week,
    )


def circular_distance(a: int, b: int, period: int) -> int:
    diff = abs(a - b) % period
    return min(diff, period - diff)


def anchor_in_month(anchor: int, year: int, month: int) -> int:
    """The anchor day as it falls in a given month; day 31 lands on the 30th or the 28th/29th."""
    return min(anchor, calendar.monthrange(year, month)[1])


def day_of_month_match_ratio(dates: Sequence[date], anchor: int, tolerance: int) -> float:
    """Share of dates whose day of month is within tolerance of the anchor, wrapping at month end."""
    hits = sum(
        1 for d in dates
        if circular_distance(
            d.day, anchor_in_month(anchor, d.year, d.month), DAYS_IN_LONGEST_MONTH
        ) <= tolerance
    )
    return hits / len(dates)


def weekday_match_ratio(dates: Sequence[date], anchor: int, tolerance: int) -> float:
    hits = sum(
        1 for d in dates
        if circular_distance(d.weekday(), anchor, DAYS_IN_WEEK) <= tolerance
    )
    return hits / len(dates)


def validate_cadence(
    dates: Sequence[date],
    cadence: CadenceInfo,
    config: DetectionConfig = DetectionConfig(),
) -> Validation:
    """
    Check that occurrences keep to their anchor.

    Monthly series must land within a couple of days of the anchor day and
    weekly/biweekly ones within a day of the anchor weekday. A failure
    invalidates the candidate outright.
    """
    if cadence.frequency == Frequency.monthly and cadence.anchor_day_of_month is not None:
        ratio = day_of_month_match_ratio(
            dates, cadence.anchor_day_of_month, config.anchor_tolerance_days
        )
    elif cadence.anchor_day_of_week is not None:
        ratio = weekday_match_ratio(
            dates, cadence.anchor_day_of_week, config.weekday_tolerance_days
        )
    else:
        return Validation(valid=True, date_consistency=1.0)

    if ratio < config.anchor_match_ratio:
        return Validation(valid=False, date_consistency=max(0.5, ratio))
    return Validation(valid=True, date_consistency=max(0.5, ratio))


def add_months(start: date, months: int, day: Optional[int] = None) -> date:
    """
    Move a date by whole months, clamping the day to the target month's length.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day or start.day, last_day))


def calculate_next_expected(
    last_date: date,
    frequency: Frequency,
    median_interval: float = 0.0,
    day_of_month: Optional[int] = None,
) -> date:
    """Calculate the next expected date based on frequency."""
    if frequency == Frequency.daily:
        return last_date + timedelta(days=1)
    elif frequency == Frequency.weekly:
        return last_date + timedelta(days=7)
    elif frequency == Frequency.biweekly:
        return last_date + timedelta(days=14)
    elif frequency == Frequency.monthly:
        return add_months(last_date, 1, day_of_month)
    elif frequency == Frequency.bimonthly:
        return add_months(last_date, 2)
    elif frequency == Frequency.quarterly:
        return add_months(last_date, 3)
    elif frequency == Frequency.yearly:
        return add_months(last_date, 12)
    else:
        return last_date + timedelta(days=round(median_interval))
