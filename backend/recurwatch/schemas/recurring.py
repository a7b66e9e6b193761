"""Pydantic schemas for recurring patterns."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from recurwatch.models.recurring import Frequency
from recurwatch.models.transaction import TransactionType


class RecurringTransactionBase(BaseModel):
    merchant_name: str = Field(..., min_length=1, max_length=255)
    frequency: Frequency
    interval: int = Field(1, ge=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    expected_amount: Decimal
    amount_variance: Decimal = Decimal("0")
    is_amount_variable: bool = False
    transaction_type: TransactionType
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    credit_card_id: Optional[str] = None
    next_expected_date: Optional[date] = None
    notes: Optional[str] = None
    reminder_enabled: bool = True
    reminder_days_before: int = Field(2, ge=0, le=30)

    @field_validator("expected_amount", "amount_variance")
    @classmethod
    def as_magnitude(cls, value: Decimal) -> Decimal:
        return abs(value)


class RecurringTransactionCreate(RecurringTransactionBase):
    """A recurring pattern entered by hand."""
    merchant_group_id: Optional[str] = None


class RecurringTransactionResponse(BaseModel):
    id: str
    merchant_group_id: Optional[str] = None
    merchant_name: str
    frequency: Frequency
    interval: int
    day_of_month: Optional[int] = None
    day_of_week: Optional[int] = None
    expected_amount: Decimal
    amount_variance: Decimal
    is_amount_variable: bool
    transaction_type: TransactionType
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    credit_card_id: Optional[str] = None
    detection_method: str
    confidence_score: Optional[float] = None
    last_occurrence_date: Optional[date] = None
    next_expected_date: Optional[date] = None
    occurrence_count: int
    is_active: bool
    is_confirmed: bool
    reminder_enabled: bool
    reminder_days_before: int
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_validator("expected_amount", "amount_variance")
    @classmethod
    def as_magnitude(cls, value: Decimal) -> Decimal:
        return abs(value)


class RecurringTransactionUpdate(BaseModel):
    merchant_name: Optional[str] = Field(None, min_length=1, max_length=255)
    frequency: Optional[Frequency] = None
    interval: Optional[int] = Field(None, ge=1)
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    expected_amount: Optional[Decimal] = None
    amount_variance: Optional[Decimal] = None
    is_amount_variable: Optional[bool] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    credit_card_id: Optional[str] = None
    next_expected_date: Optional[date] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None
    is_confirmed: Optional[bool] = None
    reminder_enabled: Optional[bool] = None
    reminder_days_before: Optional[int] = Field(None, ge=0, le=30)

    @field_validator(
        "merchant_name", "frequency", "interval", "expected_amount", "amount_variance",
        "is_amount_variable", "is_active", "is_confirmed", "reminder_enabled",
        "reminder_days_before",
    )
    @classmethod
    def not_null(cls, value):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may not be null")
        return value

    @field_validator("expected_amount", "amount_variance")
    @classmethod
    def as_magnitude(cls, value: Decimal) -> Decimal:
        return abs(value)


class MatchedTransactionsResponse(BaseModel):
    recurring_transaction_id: str
    transaction_ids: List[str]


class DetectedPattern(BaseModel):
    """A pattern produced by one detection run."""
    merchant_group_id: str
    merchant_name: str
    frequency: Frequency
    expected_amount: float
    amount_variance: float
    transaction_type: TransactionType
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    credit_card_id: Optional[str] = None
    confidence_score: float
    occurrence_count: int
    last_occurrence_date: date
    next_expected_date: date
    transaction_ids: List[str]


class DetectionResponse(BaseModel):
    """Response from a detection run."""
    detected: List[DetectedPattern]
    total_found: int
    saved: int = 0
    skipped: int = 0
    errors: int = 0
