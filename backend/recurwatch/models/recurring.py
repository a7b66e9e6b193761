"""
Recurring transaction database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, Numeric, Float, Integer, Text, Enum, ForeignKey, Index, text,
)
from sqlalchemy.orm import relationship
import enum
from recurwatch.database import Base
from recurwatch.models.transaction import TransactionType


class Frequency(str, enum.Enum):
    """Recurring frequency enumeration."""
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
    bimonthly = "bimonthly"
    quarterly = "quarterly"
    yearly = "yearly"
    custom = "custom"


class RecurringTransaction(Base):
    """A persisted recurring pattern, reviewed and confirmed by the user."""

    __tablename__ = "recurring_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    merchant_group_id = Column(String(36), ForeignKey("merchant_groups.id"), nullable=True)  # Null for manual entries
    merchant_name = Column(String(255), nullable=False)
    frequency = Column(Enum(Frequency), nullable=False)
    interval = Column(Integer, default=1, nullable=False)
    day_of_month = Column(Integer, nullable=True)
    day_of_week = Column(Integer, nullable=True)  # Monday = 0
    expected_amount = Column(Numeric(12, 2), nullable=False)
    amount_variance = Column(Numeric(14, 4), nullable=False, default=0)
    is_amount_variable = Column(Boolean, default=False, nullable=False)
    transaction_type = Column(Enum(TransactionType), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    credit_card_id = Column(String(36), ForeignKey("credit_cards.id"), nullable=True)
    detection_method = Column(String(20), default="automatic", nullable=False)  # automatic or manual
    confidence_score = Column(Float, nullable=True)
    last_occurrence_date = Column(Date, nullable=True)
    next_expected_date = Column(Date, nullable=True)
    occurrence_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_confirmed = Column(Boolean, default=False, nullable=False)
    reminder_enabled = Column(Boolean, default=True, nullable=False)
    reminder_days_before = Column(Integer, default=2, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    merchant_group = relationship("MerchantGroup")
    matches = relationship(
        "RecurringTransactionMatch", back_populates="recurring_transaction", cascade="all, delete-orphan"
    )

    # At most one active record per key; inactive history may repeat.
    __table_args__ = (
        Index(
            "uq_recurring_active_key",
            "merchant_group_id",
            "frequency",
            "transaction_type",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )


class RecurringTransactionMatch(Base):
    """Link between a recurring pattern and one of its transactions."""

    __tablename__ = "recurring_transaction_matches"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    recurring_transaction_id = Column(
        String(36), ForeignKey("recurring_transactions.id"), nullable=False, index=True
    )
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False)
    match_confidence = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    recurring_transaction = relationship("RecurringTransaction", back_populates="matches")
    transaction = relationship("Transaction")
