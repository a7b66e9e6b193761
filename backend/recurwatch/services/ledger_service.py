"""
Ledger provider: loads stored transactions as typed detection input.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from recurwatch.models.transaction import Transaction, TransactionSplit
from recurwatch.services.detection.types import CategorySplit, LedgerTransaction


def to_ledger_transaction(txn: Transaction) -> LedgerTransaction:
    """Convert an ORM transaction (with splits and categories loaded)."""
    splits = tuple(
        CategorySplit(
            category_id=split.category_id,
            is_system=bool(split.category and split.category.is_system),
            is_buffer=bool(split.category and split.category.is_buffer),
        )
        for split in txn.splits
    )
    return LedgerTransaction(
        id=txn.id,
        date=txn.date,
        amount=txn.total_amount,
        direction=txn.transaction_type,
        merchant_group_id=txn.merchant_group_id,
        merchant_name=txn.merchant_group.display_name if txn.merchant_group else None,
        account_id=txn.account_id,
        instrument_id=txn.credit_card_id,
        splits=splits,
    )


def load_ledger_transactions(
    db: Session,
    start_date: date,
    end_date: Optional[date] = None,
) -> List[LedgerTransaction]:
    """Get transactions dated within [start_date, end_date], oldest first."""
    query = db.query(Transaction).options(
        joinedload(Transaction.merchant_group),
        joinedload(Transaction.splits).joinedload(TransactionSplit.category),
    ).filter(Transaction.date >= start_date)

    if end_date:
        query = query.filter(Transaction.date <= end_date)

    transactions = query.order_by(Transaction.date, Transaction.id).all()
    return [to_ledger_transaction(t) for t in transactions]
