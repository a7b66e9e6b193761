"""Service for recurring transaction detection and management."""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recurwatch.config import DetectionConfig, settings
from recurwatch.models.recurring import RecurringTransaction, RecurringTransactionMatch
from recurwatch.models.transaction import Transaction
from recurwatch.services.detection import RecurringPattern, SaveSummary, detect
from recurwatch.services.detection.pipeline import lookback_start
from recurwatch.services.ledger_service import load_ledger_transactions
from recurwatch.services.pattern_store import PatternStore, SqlAlchemyPatternStore

logger = logging.getLogger(__name__)


class ActivePatternConflict(ValueError):
    """Another active record already holds the (merchant group, frequency, direction) key."""


def save_detected_patterns(
    store: PatternStore,
    patterns: Iterable[RecurringPattern],
) -> SaveSummary:
    """
    Persist detected patterns, skipping keys that already have an active record.

    Failures are counted per pattern and never stop the batch. If the match
    rows fail after the pattern row was stored, the pattern still counts as
    saved.
    """
    saved = 0
    skipped = 0
    errors = 0
    pattern_ids = []

    for pattern in patterns:
        try:
            pattern_id = store.insert_pattern_if_absent(pattern)
            if pattern_id is None:
                skipped += 1
                continue

            try:
                store.insert_matches(pattern_id, pattern.transaction_ids, pattern.confidence_score)
            except Exception:
                logger.warning(
                    f"Saved pattern {pattern_id} for {pattern.merchant_name} "
                    f"but failed to store its transaction matches",
                    exc_info=True,
                )

            saved += 1
            pattern_ids.append(pattern_id)
        except Exception:
            logger.exception(
                f"Failed to save {pattern.frequency.value} pattern for {pattern.merchant_name}"
            )
            errors += 1

    logger.info(f"Saved {saved} recurring patterns, skipped {skipped}, errors {errors}")
    return SaveSummary(saved=saved, skipped=skipped, errors=errors, pattern_ids=tuple(pattern_ids))


def run_detection(
    db: Session,
    lookback_months: Optional[int] = None,
    today: Optional[date] = None,
    config: Optional[DetectionConfig] = None,
    save: bool = True,
) -> Tuple[List[RecurringPattern], SaveSummary]:
    """
    Batch entry point: read the ledger window, detect, and persist new patterns.
    """
    config = config or DetectionConfig.from_settings(settings)
    today = today or date.today()
    months = lookback_months if lookback_months is not None else config.lookback_months

    transactions = load_ledger_transactions(db, lookback_start(today, months), today)
    patterns = detect(transactions, lookback_months=months, today=today, config=config)

    if not save:
        return patterns, SaveSummary()

    store = SqlAlchemyPatternStore(db, variable_ratio=config.variable_amount_flag_ratio)
    return patterns, save_detected_patterns(store, patterns)


def get_recurring_transactions(
    db: Session,
    is_active: Optional[bool] = None,
    is_confirmed: Optional[bool] = None,
) -> List[RecurringTransaction]:
    """Get persisted recurring patterns, soonest expected first."""
    query = db.query(RecurringTransaction)

    if is_active is not None:
        query = query.filter(RecurringTransaction.is_active == is_active)
    if is_confirmed is not None:
        query = query.filter(RecurringTransaction.is_confirmed == is_confirmed)

    return query.order_by(
        RecurringTransaction.next_expected_date,
        RecurringTransaction.merchant_name,
    ).all()


def get_recurring_transaction(db: Session, recurring_id: str) -> Optional[RecurringTransaction]:
    return db.query(RecurringTransaction).filter(RecurringTransaction.id == recurring_id).first()


def commit_or_conflict(db: Session, recurring: RecurringTransaction) -> RecurringTransaction:
    """Commit pending changes to a record, mapping an active-key clash to ActivePatternConflict."""
    merchant_name = recurring.merchant_name
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Recurring pattern for {merchant_name} conflicts with an active record")
        raise ActivePatternConflict(
            "An active recurring pattern already exists for this merchant, frequency and type"
        ) from e

    db.refresh(recurring)
    return recurring


def create_recurring_transaction(db: Session, data: Dict[str, Any]) -> RecurringTransaction:
    """Create a recurring pattern entered by hand."""
    recurring = RecurringTransaction(
        detection_method="manual",
        is_active=True,
        is_confirmed=False,
        occurrence_count=0,
        **data,
    )
    db.add(recurring)
    return commit_or_conflict(db, recurring)


def update_recurring_transaction(
    db: Session,
    recurring: RecurringTransaction,
    changes: Dict[str, Any],
) -> RecurringTransaction:
    for field, value in changes.items():
        setattr(recurring, field, value)

    return commit_or_conflict(db, recurring)


def delete_recurring_transaction(db: Session, recurring: RecurringTransaction) -> None:
    """Delete a recurring pattern and its transaction links; the transactions stay."""
    db.delete(recurring)
    db.commit()


def get_matched_transaction_ids(db: Session, recurring_id: str) -> List[str]:
    """Get IDs of the transactions linked to a recurring pattern."""
    rows = db.query(RecurringTransactionMatch.transaction_id).join(
        Transaction, Transaction.id == RecurringTransactionMatch.transaction_id
    ).filter(
        RecurringTransactionMatch.recurring_transaction_id == recurring_id
    ).order_by(Transaction.date, Transaction.id).all()
    return [row.transaction_id for row in rows]
