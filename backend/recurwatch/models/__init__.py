"""
Database models package.
"""

from recurwatch.models.account import Account, AccountType, CreditCard
from recurwatch.models.category import Category
from recurwatch.models.merchant_group import MerchantGroup
from recurwatch.models.transaction import Transaction, TransactionSplit, TransactionType
from recurwatch.models.recurring import RecurringTransaction, RecurringTransactionMatch, Frequency

__all__ = [
    "Account",
    "AccountType",
    "CreditCard",
    "Category",
    "MerchantGroup",
    "Transaction",
    "TransactionSplit",
    "TransactionType",
    "RecurringTransaction",
    "RecurringTransactionMatch",
    "Frequency",
]
