"""API endpoints for recurring transaction detection and management."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from recurwatch.database import get_db
from recurwatch.schemas.recurring import (
    RecurringTransactionCreate,
    RecurringTransactionResponse,
    RecurringTransactionUpdate,
    MatchedTransactionsResponse,
    DetectedPattern,
    DetectionResponse,
)
from recurwatch.services import recurring_service

router = APIRouter(prefix="/recurring", tags=["recurring"])


@router.get("", response_model=List[RecurringTransactionResponse])
def list_recurring_transactions(
    is_active: Optional[bool] = Query(None),
    is_confirmed: Optional[bool] = Query(None),
    db: Session = Depends(get_db)
):
    """Get persisted recurring patterns."""
    return recurring_service.get_recurring_transactions(db, is_active, is_confirmed)


@router.post("", response_model=RecurringTransactionResponse, status_code=201)
def create_recurring_transaction(
    data: RecurringTransactionCreate,
    db: Session = Depends(get_db)
):
    """Manually create a recurring pattern."""
    try:
        return recurring_service.create_recurring_transaction(db, data.model_dump())
    except recurring_service.ActivePatternConflict as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/detect", response_model=DetectionResponse)
def detect_recurring(
    lookback_months: Optional[int] = Query(None, ge=1, le=60),
    save: bool = Query(True, description="Persist newly detected patterns"),
    db: Session = Depends(get_db)
):
    """
    Run recurring pattern detection over the ledger.
    Newly detected patterns are stored unconfirmed unless save is false.
    """
    patterns, summary = recurring_service.run_detection(
        db, lookback_months=lookback_months, save=save
    )

    detected = [
        DetectedPattern(
            merchant_group_id=p.merchant_group_id,
            merchant_name=p.merchant_name,
            frequency=p.frequency,
            expected_amount=p.expected_amount,
            amount_variance=p.amount_variance,
            transaction_type=p.direction,
            category_id=p.category_id,
            account_id=p.account_id,
            credit_card_id=p.instrument_id,
            confidence_score=p.confidence_score,
            occurrence_count=p.occurrence_count,
            last_occurrence_date=p.last_occurrence_date,
            next_expected_date=p.next_expected_date,
            transaction_ids=list(p.transaction_ids),
        )
        for p in patterns
    ]

    return DetectionResponse(
        detected=detected,
        total_found=len(detected),
        saved=summary.saved,
        skipped=summary.skipped,
        errors=summary.errors,
    )


@router.get("/{recurring_id}", response_model=RecurringTransactionResponse)
def get_recurring_transaction(
    recurring_id: str,
    db: Session = Depends(get_db)
):
    """Get a single recurring pattern."""
    recurring = recurring_service.get_recurring_transaction(db, recurring_id)
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")
    return recurring


@router.patch("/{recurring_id}", response_model=RecurringTransactionResponse)
def update_recurring_transaction(
    recurring_id: str,
    update: RecurringTransactionUpdate,
    db: Session = Depends(get_db)
):
    """Confirm, deactivate, reschedule or edit a recurring pattern."""
    recurring = recurring_service.get_recurring_transaction(db, recurring_id)
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")

    try:
        return recurring_service.update_recurring_transaction(
            db, recurring, update.model_dump(exclude_unset=True)
        )
    except recurring_service.ActivePatternConflict as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{recurring_id}", status_code=204)
def delete_recurring_transaction(
    recurring_id: str,
    db: Session = Depends(get_db)
):
    """Delete a recurring pattern. Its transactions are kept."""
    recurring = recurring_service.get_recurring_transaction(db, recurring_id)
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")

    recurring_service.delete_recurring_transaction(db, recurring)
    return None


@router.get("/{recurring_id}/transactions", response_model=MatchedTransactionsResponse)
def get_recurring_transaction_matches(
    recurring_id: str,
    db: Session = Depends(get_db)
):
    """Get the transactions a recurring pattern was detected from."""
    recurring = recurring_service.get_recurring_transaction(db, recurring_id)
    if not recurring:
        raise HTTPException(status_code=404, detail="Recurring transaction not found")

    return MatchedTransactionsResponse(
        recurring_transaction_id=recurring.id,
        transaction_ids=recurring_service.get_matched_transaction_ids(db, recurring.id),
    )
