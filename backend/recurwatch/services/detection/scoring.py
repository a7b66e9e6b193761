"""
Confidence scoring, the variable-amount fallback and the recency gate.
"""

from datetime import date
from typing import Optional, Sequence, Tuple

from recurwatch.config import DetectionConfig
from recurwatch.models.recurring import Frequency
from recurwatch.services.detection.cadence import day_of_month_match_ratio
from recurwatch.services.detection.stats import (
    day_intervals,
    median,
    median_absolute_deviation,
    months_spanned,
    most_common,
    sample_variance,
)
from recurwatch.services.detection.types import CadenceInfo, Segment

MONTHLY_MIN_INTERVAL = 25
MONTHLY_MAX_INTERVAL = 35

WEEKLY_MIN_OCCURRENCES = 6
WEEKLY_MIN_MONTHS = 2
WEEKLY_VARIANCE_RATIO = 0.1
WEEKLY_VARIANCE_PENALTY = -0.2


def amount_consistency(amounts: Sequence[float]) -> float:
    center = median(amounts)
    if center <= 0:
        return 0.0
    return max(0.0, 1 - sample_variance(amounts) / (center * center))


def score_pattern(
    dates: Sequence[date],
    amounts: Sequence[float],
    cadence: CadenceInfo,
    date_consistency: float,
) -> float:
    """
    Combine sample size, regularity, amount consistency, time span and date
    consistency into a confidence score in [0, 1].

    Weekly series need at least six occurrences over two months; anything
    shorter scores zero, and a noisy amount costs a further 0.2.
    """
    count = len(dates)
    span = months_spanned(dates[0], dates[-1])

    occurrence_score = min(count / 10, 0.3)
    regularity_score = max(0.0, 1 - cadence.mad_ratio)
    time_span_score = min(span / 12, 0.2)

    weekly_penalty = 0.0
    if cadence.frequency == Frequency.weekly:
        if count < WEEKLY_MIN_OCCURRENCES or span < WEEKLY_MIN_MONTHS:
            return 0.0
        center = median(amounts)
        if sample_variance(amounts) > WEEKLY_VARIANCE_RATIO * center * center:
            weekly_penalty = WEEKLY_VARIANCE_PENALTY

    score = (
        occurrence_score
        + 0.3 * regularity_score
        + 0.2 * amount_consistency(amounts)
        + time_span_score
        + 0.2 * date_consistency
        + weekly_penalty
    )
    return max(0.0, min(1.0, score))


def relative_amount_spread(amounts: Sequence[float]) -> float:
    center = median(amounts)
    if center <= 0:
        return 0.0
    return (max(amounts) - min(amounts)) / center


def detect_variable_amount(
    segment: Segment,
    config: DetectionConfig = DetectionConfig(),
) -> Optional[Tuple[CadenceInfo, float]]:
    """
    Utility-bill fallback: a monthly series that keeps to its day of month
    while the amount moves.

    Returns the inferred cadence and its confidence, or None when the segment
    is not monthly, not anchored tightly enough, or its amount is effectively
    fixed.
    """
    transactions = segment.transactions
    if len(transactions) < config.variable_min_occurrences:
        return None

    dates = [t.date for t in transactions]
    intervals = day_intervals(dates)
    median_interval = median(intervals)
    if not MONTHLY_MIN_INTERVAL <= median_interval <= MONTHLY_MAX_INTERVAL:
        return None

    mad = median_absolute_deviation(intervals, median_interval)
    if mad / median_interval > config.max_mad_ratio:
        return None

    anchor = most_common([d.day for d in dates])
    match_ratio = day_of_month_match_ratio(dates, anchor, config.anchor_tolerance_days)
    if match_ratio < config.variable_anchor_match_ratio:
        return None

    amounts = [t.magnitude for t in transactions]
    if relative_amount_spread(amounts) <= config.variable_min_amount_spread:
        return None

    cadence = CadenceInfo(
        frequency=Frequency.monthly,
        median_interval_days=median_interval,
        mad=mad,
        anchor_day_of_month=anchor,
    )
    score = score_pattern(dates, amounts, cadence, config.variable_date_consistency)
    return cadence, score


def passes_recency_gate(
    last_occurrence: date,
    median_interval: float,
    today: date,
    config: DetectionConfig = DetectionConfig(),
) -> bool:
    """A pattern is active only if it last occurred within 1.5 cadence units."""
    days_since_last = (today - last_occurrence).days
    return days_since_last <= config.recency_multiplier * median_interval
