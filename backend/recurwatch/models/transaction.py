"""
Transaction database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, DateTime, Date, Numeric, Text, Enum, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship
import enum
from recurwatch.database import Base


class TransactionType(str, enum.Enum):
    """Direction of money movement."""
    income = "income"
    expense = "expense"


class Transaction(Base):
    """Ledger transaction."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    date = Column(Date, nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)  # Magnitude; direction lives in transaction_type
    transaction_type = Column(Enum(TransactionType), nullable=False)
    description = Column(Text, nullable=True)
    merchant_group_id = Column(String(36), ForeignKey("merchant_groups.id"), nullable=True)
    account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    credit_card_id = Column(String(36), ForeignKey("credit_cards.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    credit_card = relationship("CreditCard", back_populates="transactions")
    merchant_group = relationship("MerchantGroup", back_populates="transactions")
    splits = relationship(
        "TransactionSplit", back_populates="transaction", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "(account_id IS NULL) <> (credit_card_id IS NULL)",
            name="ck_transaction_single_instrument",
        ),
        Index("idx_transaction_date_merchant", "date", "merchant_group_id"),
    )


class TransactionSplit(Base):
    """Category allocation of part of a transaction."""

    __tablename__ = "transaction_splits"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)

    # Relationships
    transaction = relationship("Transaction", back_populates="splits")
    category = relationship("Category", back_populates="splits")
