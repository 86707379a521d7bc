"""Period statistics with a comparison to the last earlier period that was rated"""

from datetime import datetime
from typing import Callable, List, Optional, Tuple
from sqlalchemy.orm import Session

from expense_ledger.config import settings
from expense_ledger.domain.exceptions import ValidationError
from expense_ledger.domain.models import LedgerEntry, PeriodStatistics
from expense_ledger.domain.statistics import rated_scores, summarize_period
from expense_ledger.infrastructure.database.repositories import LedgerRepository, to_ledger_entry
from expense_ledger.services.charges import ensure_charges_up_to_now
from expense_ledger.utils.date_utils import (
    month_bounds,
    month_key,
    previous_month_key,
    previous_week_key,
    week_bounds,
    week_key,
)

PERIOD_TYPES = {
    "month": (month_key, month_bounds, previous_month_key),
    "week": (week_key, week_bounds, previous_week_key),
}


def _entries(db: Session, user_id: str, bounds: Tuple[datetime, datetime]) -> List[LedgerEntry]:
    start, end = bounds
    return [to_ledger_entry(r) for r in LedgerRepository(db).list_between(user_id, start, end)]


def _find_comparison(
    db: Session,
    user_id: str,
    key: str,
    bounds_of: Callable[[str], Tuple[datetime, datetime]],
    previous_of: Callable[[str], str],
) -> List[LedgerEntry]:
    """Entries of the nearest earlier period holding rated entries, searching a bounded number back"""
    search_key = key
    for _ in range(settings.comparison_lookback_periods + 1):
        search_key = previous_of(search_key)
        entries = _entries(db, user_id, bounds_of(search_key))
        if rated_scores(entries):
            return entries
    return []


def period_statistics(
    db: Session,
    user_id: str,
    period_type: str = "month",
    period_key: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, List[LedgerEntry], PeriodStatistics]:
    """
    Statistics for a month (YYYY-MM) or ISO week (YYYY-Www).

    Raises:
        ValidationError: unknown period type, malformed key or a future period
    """
    if period_type not in PERIOD_TYPES:
        raise ValidationError(f"Invalid period type: {period_type!r}")
    now = now or datetime.now()
    key_of, bounds_of, previous_of = PERIOD_TYPES[period_type]

    current_key = key_of(now)
    key = period_key or current_key
    bounds = bounds_of(key)
    if bounds[0] > now:
        raise ValidationError(f"Future {period_type}s are not allowed")

    if key == current_key:
        ensure_charges_up_to_now(db, user_id, now)

    entries = _entries(db, user_id, bounds)
    comparison = _find_comparison(db, user_id, key, bounds_of, previous_of)
    return key, entries, summarize_period(entries, comparison)
