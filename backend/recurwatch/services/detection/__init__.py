"""
Recurring transaction detection pipeline.
"""

from recurwatch.services.detection.pipeline import detect, detect_group
from recurwatch.services.detection.types import (
    CadenceInfo,
    CandidateGroup,
    CategorySplit,
    LedgerTransaction,
    RecurringPattern,
    SaveSummary,
    Segment,
    Validation,
)

__all__ = [
    "detect",
    "detect_group",
    "CadenceInfo",
    "CandidateGroup",
    "CategorySplit",
    "LedgerTransaction",
    "RecurringPattern",
    "SaveSummary",
    "Segment",
    "Validation",
]
