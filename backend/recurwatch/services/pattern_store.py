"""
Persistence for detected recurring patterns.
"""

import logging
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from recurwatch.config import DetectionConfig, settings
from recurwatch.models.recurring import Frequency, RecurringTransaction, RecurringTransactionMatch
from recurwatch.models.transaction import TransactionType
from recurwatch.services.detection.types import RecurringPattern

logger = logging.getLogger(__name__)


class PatternStore(Protocol):
    """What the batch persister needs from a pattern store."""

    def exists_active_pattern(
        self, merchant_group_id: str, frequency: Frequency, direction: TransactionType
    ) -> bool:
        ...

    def insert_pattern(self, pattern: RecurringPattern) -> str:
        ...

    def insert_pattern_if_absent(self, pattern: RecurringPattern) -> Optional[str]:
        """Insert unless an active record exists for the key; None when skipped."""
        ...

    def insert_matches(
        self, pattern_id: str, transaction_ids: Sequence[str], confidence: float
    ) -> None:
        ...


def build_record(
    pattern: RecurringPattern,
    variable_ratio: float = DetectionConfig.variable_amount_flag_ratio,
    reminder_days_before: int = 2,
) -> RecurringTransaction:
    """Map a detected pattern to a new, unconfirmed record."""
    expected_amount = abs(pattern.expected_amount)
    amount_variance = abs(pattern.amount_variance)

    return RecurringTransaction(
        merchant_group_id=pattern.merchant_group_id,
        merchant_name=pattern.merchant_name,
        frequency=pattern.frequency,
        interval=1,
        day_of_month=pattern.anchor_day_of_month,
        day_of_week=pattern.anchor_day_of_week,
        expected_amount=Decimal(str(round(expected_amount, 2))),
        amount_variance=Decimal(str(round(amount_variance, 4))),
        is_amount_variable=amount_variance > expected_amount * variable_ratio,
        transaction_type=pattern.direction,
        category_id=pattern.category_id,
        account_id=pattern.account_id,
        credit_card_id=pattern.instrument_id,
        detection_method="automatic",
        confidence_score=pattern.confidence_score,
        last_occurrence_date=pattern.last_occurrence_date,
        next_expected_date=pattern.next_expected_date,
        occurrence_count=pattern.occurrence_count,
        is_active=True,
        is_confirmed=False,
        reminder_enabled=True,
        reminder_days_before=reminder_days_before,
    )


class SqlAlchemyPatternStore:
    """
    Pattern store backed by the application database.

    A partial unique index allows one active record per (merchant group,
    frequency, direction); insert_pattern_if_absent relies on it so two
    concurrent detection runs cannot both insert the same key.
    """

    def __init__(
        self,
        db: Session,
        variable_ratio: Optional[float] = None,
        reminder_days_before: Optional[int] = None,
    ):
        self.db = db
        self.variable_ratio = (
            variable_ratio if variable_ratio is not None
            else DetectionConfig.from_settings(settings).variable_amount_flag_ratio
        )
        self.reminder_days_before = (
            reminder_days_before if reminder_days_before is not None else settings.reminder_days_before
        )

    def exists_active_pattern(
        self, merchant_group_id: str, frequency: Frequency, direction: TransactionType
    ) -> bool:
        return self.db.query(RecurringTransaction.id).filter(
            RecurringTransaction.merchant_group_id == merchant_group_id,
            RecurringTransaction.frequency == frequency,
            RecurringTransaction.transaction_type == direction,
            RecurringTransaction.is_active == True
        ).first() is not None

    def insert_pattern(self, pattern: RecurringPattern) -> str:
        record = build_record(pattern, self.variable_ratio, self.reminder_days_before)
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return record.id

    def insert_pattern_if_absent(self, pattern: RecurringPattern) -> Optional[str]:
        if self.exists_active_pattern(pattern.merchant_group_id, pattern.frequency, pattern.direction):
            return None
        try:
            return self.insert_pattern(pattern)
        except IntegrityError:
            # Lost the race to another run; its record now holds the key.
            if self.exists_active_pattern(pattern.merchant_group_id, pattern.frequency, pattern.direction):
                return None
            raise

    def insert_matches(
        self, pattern_id: str, transaction_ids: Sequence[str], confidence: float
    ) -> None:
        if not transaction_ids:
            return
        try:
            self.db.add_all([
                RecurringTransactionMatch(
                    recurring_transaction_id=pattern_id,
                    transaction_id=transaction_id,
                    match_confidence=confidence,
                )
                for transaction_id in transaction_ids
            ])
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
