"""GET /v1/statistics - spend and rating figures for a month or week"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from expense_ledger.api.dependencies import get_current_user_id
from expense_ledger.api.v1.schemas import LedgerEntrySchema, StatisticsResponse
from expense_ledger.infrastructure.database.session import get_db
from expense_ledger.services.statistics import period_statistics

router = APIRouter()


@router.get("/statistics", response_model=StatisticsResponse)
def get_statistics(
    period_type: str = Query("month", description="month | week"),
    period_key: Optional[str] = Query(None, description="YYYY-MM or YYYY-Www"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Period totals and average rating.

    rating_diff compares against the most recent earlier period with rated
    entries, searching up to a year back.
    """
    key, entries, stats = period_statistics(db, user_id, period_type, period_key)
    return StatisticsResponse(
        period_type=period_type,
        period_key=key,
        expenses=[LedgerEntrySchema.from_entry(e) for e in entries],
        total_spent=stats.total_spent,
        avg_rating=stats.avg_rating,
        rating_diff=stats.rating_diff,
        has_comparison=stats.has_comparison,
        ratings_for_density=stats.ratings_for_density,
    )
