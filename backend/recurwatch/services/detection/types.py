"""
Typed values flowing through the detection pipeline.

Every stage takes and returns these immutable values; nothing here touches the
database.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from recurwatch.models.recurring import Frequency
from recurwatch.models.transaction import TransactionType


InstrumentKey = Tuple[str, str]


@dataclass(frozen=True)
class CategorySplit:
    category_id: Optional[str]
    is_system: bool = False
    is_buffer: bool = False

    @property
    def is_user_facing(self) -> bool:
        return not (self.is_system or self.is_buffer)


@dataclass(frozen=True)
class LedgerTransaction:
    """A dated transaction as supplied by the ledger provider."""

    id: str
    date: date
    amount: Decimal
    direction: TransactionType
    merchant_group_id: Optional[str] = None
    merchant_name: Optional[str] = None
    account_id: Optional[str] = None
    instrument_id: Optional[str] = None
    splits: Tuple[CategorySplit, ...] = ()

    def __post_init__(self):
        if (self.account_id is None) == (self.instrument_id is None):
            raise ValueError(
                f"Transaction {self.id} must settle against exactly one of account or instrument"
            )

    @property
    def magnitude(self) -> float:
        return float(abs(self.amount))

    @property
    def instrument_key(self) -> InstrumentKey:
        if self.account_id is not None:
            return ("account", self.account_id)
        return ("instrument", self.instrument_id)


@dataclass(frozen=True)
class CandidateGroup:
    merchant_group_id: str
    direction: TransactionType
    instrument_key: InstrumentKey
    transactions: Tuple[LedgerTransaction, ...]


@dataclass(frozen=True)
class Segment:
    transactions: Tuple[LedgerTransaction, ...]

    def __len__(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class CadenceInfo:
    frequency: Frequency
    median_interval_days: float
    mad: float
    anchor_day_of_month: Optional[int] = None
    anchor_day_of_week: Optional[int] = None  # Monday = 0

    @property
    def mad_ratio(self) -> float:
        return self.mad / self.median_interval_days


@dataclass(frozen=True)
class Validation:
    valid: bool
    date_consistency: float = 1.0


@dataclass(frozen=True)
class RecurringPattern:
    """A detected recurring pattern, ready to be persisted."""

    merchant_group_id: str
    merchant_name: str
    frequency: Frequency
    expected_amount: float
    amount_variance: float
    direction: TransactionType
    confidence_score: float
    occurrence_count: int
    last_occurrence_date: date
    next_expected_date: date
    transaction_ids: Tuple[str, ...]
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    instrument_id: Optional[str] = None
    median_interval_days: float = 0.0
    anchor_day_of_month: Optional[int] = None
    anchor_day_of_week: Optional[int] = None


@dataclass(frozen=True)
class SaveSummary:
    saved: int = 0
    skipped: int = 0
    errors: int = 0
    pattern_ids: Tuple[str, ...] = field(default=())
