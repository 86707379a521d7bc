"""Expense use cases: logging, listing, rating, deleting and stopping charges"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from expense_ledger.domain.exceptions import ClosedPeriodError, NotFoundError, PersistenceError, ValidationError
from expense_ledger.domain.models import IntervalType, LedgerEntry, MonthSummary, RatingInput
from expense_ledger.domain.rating import build_rating
from expense_ledger.domain.recurrence import next_charge, validate_interval
from expense_ledger.domain.statistics import summarize_month
from expense_ledger.infrastructure.database.models import ExpenseDefinitionRecord, ExpenseInstanceRecord
from expense_ledger.infrastructure.database.repositories import (
    DefinitionRepository,
    LedgerRepository,
    to_definition,
    to_ledger_entry,
)
from expense_ledger.infrastructure.observability.logging import log_rating
from expense_ledger.infrastructure.observability.metrics import ratings_counter
from expense_ledger.services.charges import ensure_charges_up_to_now
from expense_ledger.utils.date_utils import month_key, parse_month_key

CENT = Decimal("0.01")

logger = logging.getLogger(__name__)


@dataclass
class UnratedEntry:
    """Unrated entry plus its definition's aggregates when it recurs"""

    entry: LedgerEntry
    times_charged: Optional[int]
    total_paid: Optional[Decimal]


def _parse_amount(amount) -> Decimal:
    if isinstance(amount, bool):
        raise ValidationError("amount must be a positive number")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError("amount must be a positive number") from e
    if not value.is_finite():
        raise ValidationError("amount must be a positive number")
    # Sub-cent amounts round to zero
    value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if value <= 0:
        raise ValidationError("amount must be at least 0.01")
    return value


def create_expense(
    db: Session,
    user_id: str,
    amount,
    purpose: str,
    is_recurring: bool = False,
    interval_type: Optional[str] = None,
    interval_every: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Tuple[ExpenseDefinitionRecord, ExpenseInstanceRecord]:
    """
    Create a definition and its first charge at now, in one transaction.

    Monthly and yearly definitions pin their anchor day to today's day of month.
    """
    now = now or datetime.now()
    value = _parse_amount(amount)
    if not isinstance(purpose, str) or not purpose.strip():
        raise ValidationError("purpose is required")

    if is_recurring:
        kind = validate_interval(interval_type, interval_every)
        if kind == IntervalType.NONE:
            raise ValidationError("Recurring expenses need an interval type")
        every = interval_every
    else:
        kind, every = IntervalType.NONE, 1

    anchor = now.day if kind in (IntervalType.MONTHS, IntervalType.YEARS) else None

    definitions = DefinitionRepository(db)
    try:
        definition = definitions.create_definition(
            user_id=user_id,
            purpose=purpose.strip(),
            amount=value,
            is_recurring=bool(is_recurring),
            interval_type=kind,
            interval_every=every,
            start_date=now,
            anchor_day_of_month=anchor,
        )
        instance = LedgerRepository(db).add_entry(definition, now)
        definitions.record_charge(definition, value, now)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Expense creation rolled back: {e}", extra={"user_id": user_id})
        raise PersistenceError(f"Could not save expense: {e}") from e
    except Exception:
        db.rollback()
        raise
    return definition, instance


def resolve_month_key(requested: Optional[str], now: datetime) -> str:
    """Requested month, clamped so it never lies in the future"""
    current = month_key(now)
    if not requested:
        return current
    parse_month_key(requested)
    return min(requested, current)


def list_month(
    db: Session,
    user_id: str,
    requested_month: Optional[str] = None,
    sort_by: str = "date",
    order: str = "desc",
    now: Optional[datetime] = None,
) -> Tuple[str, List[LedgerEntry]]:
    """Entries of a month; tops up recurring charges first when it is the current month"""
    now = now or datetime.now()
    key = resolve_month_key(requested_month, now)
    if key == month_key(now):
        ensure_charges_up_to_now(db, user_id, now)

    records = LedgerRepository(db).list_for_month(user_id, key, sort_by, order)
    return key, [to_ledger_entry(r) for r in records]


def current_month_summary(db: Session, user_id: str, now: Optional[datetime] = None) -> MonthSummary:
    now = now or datetime.now()
    ensure_charges_up_to_now(db, user_id, now)
    key = month_key(now)
    records = LedgerRepository(db).list_for_month(user_id, key)
    return summarize_month(key, [to_ledger_entry(r) for r in records])


def list_unrated(db: Session, user_id: str, now: Optional[datetime] = None) -> List[UnratedEntry]:
    now = now or datetime.now()
    ensure_charges_up_to_now(db, user_id, now)

    records = LedgerRepository(db).list_unrated(user_id, month_key(now))
    records_by_id = DefinitionRepository(db).get_by_ids(list({r.definition_id for r in records}))
    definitions = {definition_id: to_definition(d) for definition_id, d in records_by_id.items()}

    unrated = []
    for record in records:
        definition = definitions.get(record.definition_id)
        recurring = definition is not None and definition.is_recurring
        unrated.append(
            UnratedEntry(
                entry=to_ledger_entry(record),
                times_charged=definition.times_charged if recurring else None,
                total_paid=definition.total_paid if recurring else None,
            )
        )
    return unrated


def _current_month_entry(db: Session, user_id: str, entry_id: uuid.UUID, now: datetime) -> ExpenseInstanceRecord:
    instance = LedgerRepository(db).get_for_user(entry_id, user_id)
    if instance is None:
        raise NotFoundError("Expense entry not found")
    if instance.month_key != month_key(now):
        raise ClosedPeriodError("Only entries of the current month can be changed")
    return instance


def rate_entry(
    db: Session, user_id: str, entry_id: uuid.UUID, rating_input: RatingInput, now: Optional[datetime] = None
) -> LedgerEntry:
    """Compute and store the rating of a current-month entry"""
    now = now or datetime.now()
    instance = _current_month_entry(db, user_id, entry_id, now)

    rating = build_rating(rating_input, rated_at=now)
    try:
        LedgerRepository(db).apply_rating(instance, rating)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Rating rolled back: {e}", extra={"user_id": user_id, "entry_id": str(entry_id)})
        raise PersistenceError(f"Could not save rating: {e}") from e
    except Exception:
        db.rollback()
        raise

    ratings_counter.labels(status=rating.status.value).inc()
    log_rating(user_id, str(entry_id), rating.status.value, rating.score)
    return to_ledger_entry(instance)


def delete_entry(db: Session, user_id: str, entry_id: uuid.UUID, now: Optional[datetime] = None) -> None:
    """
    Delete a current-month entry and take it out of its definition's aggregates.

    A one-off definition whose only charge is deleted goes with it.
    """
    now = now or datetime.now()
    instance = _current_month_entry(db, user_id, entry_id, now)
    definitions = DefinitionRepository(db)
    definition = definitions.get_for_user(instance.definition_id, user_id)

    try:
        amount = instance.amount_snapshot
        LedgerRepository(db).delete(instance)

        if definition is not None:
            only_charge = not definition.is_recurring and definition.times_charged == 1
            if only_charge:
                definitions.delete(definition)
            else:
                definitions.revert_charge(definition, amount)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Entry deletion rolled back: {e}", extra={"user_id": user_id, "entry_id": str(entry_id)})
        raise PersistenceError(f"Could not delete entry: {e}") from e
    except Exception:
        db.rollback()
        raise


def get_definition(db: Session, user_id: str, definition_id: uuid.UUID) -> ExpenseDefinitionRecord:
    definition = DefinitionRepository(db).get_for_user(definition_id, user_id)
    if definition is None:
        raise NotFoundError("Expense definition not found")
    return definition


def next_charge_date(
    db: Session, user_id: str, definition_id: uuid.UUID, now: Optional[datetime] = None
) -> Optional[datetime]:
    """Upcoming charge of a definition, or None when nothing is pending in the future"""
    definition = to_definition(get_definition(db, user_id, definition_id))
    return next_charge(definition, now or datetime.now())


def stop_recurring(db: Session, user_id: str, definition_id: uuid.UUID) -> None:
    """Stop generating charges; existing entries stay in the ledger"""
    definition = get_definition(db, user_id, definition_id)
    if not definition.is_recurring:
        raise ValidationError("Expense is not recurring")
    try:
        definition.is_recurring = False
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Stopping recurrence rolled back: {e}", extra={"user_id": user_id})
        raise PersistenceError(f"Could not stop recurring expense: {e}") from e
    except Exception:
        db.rollback()
        raise
