"""
Candidate grouping, gap segmentation and amount clustering.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from recurwatch.config import DetectionConfig
from recurwatch.services.detection.stats import day_intervals, median
from recurwatch.services.detection.types import (
    CandidateGroup,
    InstrumentKey,
    LedgerTransaction,
    Segment,
)
from recurwatch.models.transaction import TransactionType

logger = logging.getLogger(__name__)

# Gap floors for the two interval scales
MONTHLY_SCALE_DAYS = 25
MONTHLY_GAP_FLOOR_DAYS = 45
WEEKLY_GAP_FLOOR_DAYS = 21


def is_candidate(txn: LedgerTransaction) -> bool:
    """
    A transaction can take part in detection when it has a merchant group and
    at least one user-facing split. Unsplit transactions count as user-facing.
    """
    if not txn.merchant_group_id:
        return False
    if not txn.splits:
        return True
    return any(split.is_user_facing for split in txn.splits)


def group_candidates(
    transactions: Iterable[LedgerTransaction],
    config: DetectionConfig = DetectionConfig(),
) -> List[CandidateGroup]:
    """
    Partition transactions by (merchant group, direction, instrument).

    Groups smaller than the minimum occurrence count are dropped. Members are
    ordered by date, and groups by their earliest member.
    """
    ordered = sorted(
        (t for t in transactions if is_candidate(t)),
        key=lambda t: (t.date, t.id),
    )

    buckets: Dict[Tuple[str, TransactionType, InstrumentKey], List[LedgerTransaction]] = {}
    for txn in ordered:
        key = (txn.merchant_group_id, txn.direction, txn.instrument_key)
        buckets.setdefault(key, []).append(txn)

    groups = []
    for (merchant_group_id, direction, instrument_key), members in buckets.items():
        if len(members) < config.min_occurrences:
            continue
        groups.append(
            CandidateGroup(
                merchant_group_id=merchant_group_id,
                direction=direction,
                instrument_key=instrument_key,
                transactions=tuple(members),
            )
        )
    return groups


def gap_threshold(median_interval: float) -> float:
    """Largest interval that still continues a run at this cadence."""
    if median_interval >= MONTHLY_SCALE_DAYS:
        return max(2 * median_interval, MONTHLY_GAP_FLOOR_DAYS)
    return max(2 * median_interval, WEEKLY_GAP_FLOOR_DAYS)


def segment_by_gap(transactions: Tuple[LedgerTransaction, ...]) -> List[Segment]:
    """Split a chronological run wherever an interval exceeds the gap threshold."""
    if len(transactions) < 2:
        return [Segment(transactions=tuple(transactions))]

    intervals = day_intervals([t.date for t in transactions])
    threshold = gap_threshold(median(intervals))

    segments = []
    current = [transactions[0]]
    for txn, interval in zip(transactions[1:], intervals):
        if interval > threshold:
            segments.append(Segment(transactions=tuple(current)))
            current = []
        current.append(txn)
    segments.append(Segment(transactions=tuple(current)))
    return segments


def eligible_segment(
    group: CandidateGroup,
    config: DetectionConfig = DetectionConfig(),
) -> Optional[Segment]:
    """
    The most recent segment of a group, if it is large enough.

    Older segments are never considered: a recurrence that stopped and left
    only a couple of recent stragglers is not active.
    """
    segments = segment_by_gap(group.transactions)
    recent = segments[-1]
    if len(recent) < config.min_occurrences:
        logger.debug(
            f"Merchant group {group.merchant_group_id}: recent segment has "
            f"{len(recent)} transactions, skipping"
        )
        return None
    return recent


def amount_tolerance(seed_amount: float, config: DetectionConfig = DetectionConfig()) -> float:
    return max(config.amount_tolerance_abs, config.amount_tolerance_pct * seed_amount)


def cluster_by_amount(
    segment: Segment,
    config: DetectionConfig = DetectionConfig(),
) -> List[Tuple[LedgerTransaction, ...]]:
    """
    Greedy fixed-amount clustering.

    Seeds are taken in chronological order; every unclustered transaction within
    tolerance of the seed joins its cluster. Clusters below the minimum size are
    discarded.
    """
    remaining = list(segment.transactions)
    clusters = []

    while remaining:
        seed = remaining.pop(0)
        tolerance = amount_tolerance(seed.magnitude, config)

        members = [seed]
        rest = []
        for txn in remaining:
            if abs(txn.magnitude - seed.magnitude) <= tolerance:
                members.append(txn)
            else:
                rest.append(txn)
        remaining = rest

        if len(members) >= config.min_occurrences:
            clusters.append(tuple(members))

    return clusters
