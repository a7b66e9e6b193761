"""
Pydantic schemas package.
"""

from recurwatch.schemas.recurring import (
    RecurringTransactionCreate,
    RecurringTransactionResponse,
    RecurringTransactionUpdate,
    MatchedTransactionsResponse,
    DetectedPattern,
    DetectionResponse,
)

__all__ = [
    "RecurringTransactionCreate",
    "RecurringTransactionResponse",
    "RecurringTransactionUpdate",
    "MatchedTransactionsResponse",
    "DetectedPattern",
    "DetectionResponse",
]
