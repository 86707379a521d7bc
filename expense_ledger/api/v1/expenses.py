"""Expense endpoints - logging, monthly listing, rating, deletion and recurrence control"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from expense_ledger.api.dependencies import get_current_user_id, parse_id
from expense_ledger.api.v1.schemas import (
    CreateExpenseRequest,
    CreateExpenseResponse,
    LedgerEntrySchema,
    MessageResponse,
    MonthExpensesResponse,
    MonthSummaryResponse,
    NextChargeResponse,
    RatingRequest,
    RatingResponse,
    UnratedEntrySchema,
)
from expense_ledger.infrastructure.database.session import get_db
from expense_ledger.services import expenses
from expense_ledger.utils.date_utils import month_key

router = APIRouter()


@router.post("/expenses", response_model=CreateExpenseResponse, status_code=201)
def create_expense(
    request_body: CreateExpenseRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Log an expense.

    Creates the definition and its first charge right away; recurring ones
    are topped up lazily whenever current-month data is read.
    """
    definition, instance = expenses.create_expense(
        db,
        user_id,
        amount=request_body.amount,
        purpose=request_body.purpose,
        is_recurring=request_body.is_recurring,
        interval_type=request_body.interval_type,
        interval_every=request_body.interval_every,
    )
    return CreateExpenseResponse(definition_id=str(definition.id), entry_id=str(instance.id))


@router.get("/expenses/current-month", response_model=MonthExpensesResponse)
def get_month_expenses(
    month_key_param: Optional[str] = Query(None, alias="month_key"),
    sort_by: str = Query("date"),
    order: str = Query("desc"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    List entries of a month (default: current month).

    Future months fall back to the current one.
    """
    now = datetime.now()
    key, entries = expenses.list_month(db, user_id, month_key_param, sort_by, order, now=now)
    return MonthExpensesResponse(
        month_key=key,
        is_current_month=key == month_key(now),
        expenses=[LedgerEntrySchema.from_entry(e) for e in entries],
    )


@router.get("/expenses/summary/current-month", response_model=MonthSummaryResponse)
def get_month_summary(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    summary = expenses.current_month_summary(db, user_id)
    return MonthSummaryResponse(
        month_key=summary.month_key,
        total_spent=summary.total_spent,
        count_unrated=summary.count_unrated,
    )


@router.get("/expenses/unrated/current-month", response_model=List[UnratedEntrySchema])
def get_unrated(db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    return [
        UnratedEntrySchema.from_entry(
            item.entry,
            times_charged=item.times_charged,
            total_paid=float(item.total_paid) if item.total_paid is not None else None,
        )
        for item in expenses.list_unrated(db, user_id)
    ]


def _rate(entry_id: str, request_body: RatingRequest, db: Session, user_id: str) -> RatingResponse:
    entry = expenses.rate_entry(db, user_id, parse_id(entry_id, "entry"), request_body.to_input())
    return RatingResponse(
        id=str(entry.id),
        rating_status=entry.rating.status,
        rating_value=entry.rating.score,
        rated_at=entry.rating.rated_at,
    )


@router.post("/expenses/{entry_id}/rate", response_model=RatingResponse)
def rate_expense(
    entry_id: str,
    request_body: RatingRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Rate an entry of the current month"""
    return _rate(entry_id, request_body, db, user_id)


@router.put("/expenses/{entry_id}/rate", response_model=RatingResponse)
def update_rating(
    entry_id: str,
    request_body: RatingRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return _rate(entry_id, request_body, db, user_id)


@router.delete("/expenses/{entry_id}", response_model=MessageResponse)
def delete_expense(entry_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    expenses.delete_entry(db, user_id, parse_id(entry_id, "entry"))
    return MessageResponse(message="Charge deleted")


@router.get("/expenses/definitions/{definition_id}/next-charge", response_model=NextChargeResponse)
def get_next_charge(
    definition_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
):
    """
    Upcoming charge of a definition.

    Lets a client warn, before stopping a recurring expense, whether a charge
    is still scheduled.
    """
    due = expenses.next_charge_date(db, user_id, parse_id(definition_id, "definition"))
    return NextChargeResponse(has_next_charge=due is not None, next_charge_date=due)


@router.post("/expenses/definitions/{definition_id}/stop", response_model=MessageResponse)
def stop_recurring(definition_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)):
    expenses.stop_recurring(db, user_id, parse_id(definition_id, "definition"))
    return MessageResponse(message="Recurring expense stopped")
