"""
Recurring pattern detection over a ledger owner's transaction history.

Usage:
    patterns = detect(transactions, lookback_months=12)

Stages, each a pure function of the previous one:
1. Group candidates by merchant group, direction and settlement instrument
2. Split each group at large gaps; keep only the most recent segment
3. Cluster the segment by amount (fixed-price recurrences)
4. Infer cadence from median interval and MAD, then validate the date anchor
5. Score, drop anything below the confidence threshold or no longer recent
6. Try variable-amount monthly detection for utility-like bills, keeping
   fixed-amount patterns when both find the same frequency
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

from recurwatch.config import DetectionConfig
from recurwatch.services.detection.cadence import (
    add_months,
    calculate_next_expected,
    infer_cadence,
    validate_cadence,
)
from recurwatch.services.detection.grouping import (
    cluster_by_amount,
    eligible_segment,
    group_candidates,
)
from recurwatch.services.detection.scoring import (
    detect_variable_amount,
    passes_recency_gate,
    score_pattern,
)
from recurwatch.services.detection.stats import median, most_common, sample_variance
from recurwatch.services.detection.types import (
    CadenceInfo,
    CandidateGroup,
    LedgerTransaction,
    RecurringPattern,
)

logger = logging.getLogger(__name__)

UNKNOWN_MERCHANT = "Unknown"


def lookback_start(today: date, lookback_months: int) -> date:
    return add_months(today, -lookback_months)


def pattern_category(transactions: Sequence[LedgerTransaction]) -> Optional[str]:
    """Most common user-facing category across the pattern's splits."""
    category_ids = [
        split.category_id
        for txn in transactions
        for split in txn.splits
        if split.is_user_facing and split.category_id
    ]
    if not category_ids:
        return None
    return most_common(category_ids)


def build_pattern(
    group: CandidateGroup,
    transactions: Sequence[LedgerTransaction],
    cadence: CadenceInfo,
    score: float,
) -> RecurringPattern:
    amounts = [t.magnitude for t in transactions]
    latest = transactions[-1]

    return RecurringPattern(
        merchant_group_id=group.merchant_group_id,
        merchant_name=group.transactions[0].merchant_name or UNKNOWN_MERCHANT,
        frequency=cadence.frequency,
        expected_amount=median(amounts),
        amount_variance=sample_variance(amounts),
        direction=group.direction,
        confidence_score=score,
        occurrence_count=len(transactions),
        last_occurrence_date=latest.date,
        next_expected_date=calculate_next_expected(
            latest.date,
            cadence.frequency,
            cadence.median_interval_days,
            cadence.anchor_day_of_month,
        ),
        transaction_ids=tuple(t.id for t in transactions),
        category_id=pattern_category(transactions),
        account_id=latest.account_id,
        instrument_id=latest.instrument_id,
        median_interval_days=cadence.median_interval_days,
        anchor_day_of_month=cadence.anchor_day_of_month,
        anchor_day_of_week=cadence.anchor_day_of_week,
    )


def accept(
    group: CandidateGroup,
    transactions: Sequence[LedgerTransaction],
    cadence: CadenceInfo,
    score: float,
    today: date,
    config: DetectionConfig,
) -> Optional[RecurringPattern]:
    """Apply the confidence threshold and recency gate, then build the pattern."""
    if score < config.min_confidence:
        logger.debug(
            f"Merchant group {group.merchant_group_id}: {cadence.frequency.value} "
            f"score {score:.2f} below threshold"
        )
        return None

    if not passes_recency_gate(transactions[-1].date, cadence.median_interval_days, today, config):
        logger.debug(
            f"Merchant group {group.merchant_group_id}: last occurrence "
            f"{transactions[-1].date} too old for {cadence.frequency.value} cadence"
        )
        return None

    return build_pattern(group, transactions, cadence, score)


def evaluate_cluster(
    group: CandidateGroup,
    cluster: Sequence[LedgerTransaction],
    today: date,
    config: DetectionConfig,
) -> Optional[RecurringPattern]:
    dates = [t.date for t in cluster]

    cadence = infer_cadence(dates, config)
    if cadence is None:
        return None

    validation = validate_cadence(dates, cadence, config)
    if not validation.valid:
        return None

    amounts = [t.magnitude for t in cluster]
    score = score_pattern(dates, amounts, cadence, validation.date_consistency)
    return accept(group, cluster, cadence, score, today, config)


def detect_group(
    group: CandidateGroup,
    today: date,
    config: DetectionConfig = DetectionConfig(),
) -> List[RecurringPattern]:
    """Detect the patterns of a single candidate group."""
    segment = eligible_segment(group, config)
    if segment is None:
        return []

    patterns = []
    for cluster in cluster_by_amount(segment, config):
        pattern = evaluate_cluster(group, cluster, today, config)
        if pattern:
            patterns.append(pattern)

    if len(segment) >= config.variable_min_occurrences:
        variable = detect_variable_amount(segment, config)
        if variable:
            cadence, score = variable
            # One pattern per persisted key; a fixed-amount match wins
            if any(p.frequency == cadence.frequency for p in patterns):
                logger.debug(
                    f"Merchant group {group.merchant_group_id}: variable-amount "
                    f"{cadence.frequency.value} pattern already covered by a fixed amount"
                )
            else:
                pattern = accept(group, segment.transactions, cadence, score, today, config)
                if pattern:
                    patterns.append(pattern)

    return patterns


def detect(
    transactions: Iterable[LedgerTransaction],
    lookback_months: Optional[int] = None,
    today: Optional[date] = None,
    config: Optional[DetectionConfig] = None,
) -> List[RecurringPattern]:
    """
    Detect recurring patterns in one ledger owner's transactions.

    Only transactions inside the lookback window ending today are considered.
    Groups are independent of each other, so the result depends only on the
    input transactions, today's date and the configuration.
    """
    config = config or DetectionConfig()
    today = today or date.today()
    months = lookback_months if lookback_months is not None else config.lookback_months
    start = lookback_start(today, months)

    window = [t for t in transactions if start <= t.date <= today]

    patterns = []
    for group in group_candidates(window, config):
        patterns.extend(detect_group(group, today, config))

    logger.info(f"Detected {len(patterns)} recurring patterns from {len(window)} transactions")
    return patterns
