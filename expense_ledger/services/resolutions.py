"""Resolution use cases: CRUD with the monthly cap, and status evaluation"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from expense_ledger.config import settings
from expense_ledger.domain.exceptions import NotFoundError, PersistenceError, ResolutionLimitError
from expense_ledger.domain.models import ResolutionStatus, ResolutionType
from expense_ledger.domain.resolutions import evaluate_resolution, validate_parameters
from expense_ledger.infrastructure.database.models import ResolutionRecord
from expense_ledger.infrastructure.database.repositories import (
    LedgerRepository,
    ResolutionRepository,
    to_ledger_entry,
    to_resolution,
)
from expense_ledger.infrastructure.observability.metrics import record_resolution
from expense_ledger.utils.date_utils import month_bounds, month_key, parse_month_key, previous_month_key

MONEY_PARAMETERS = ("amount_threshold", "reduction_amount", "max_affective_amount")

logger = logging.getLogger(__name__)


def _to_columns(parameters: Dict) -> Dict:
    """Money parameters are stored as 2-place decimals"""
    return {
        name: Decimal(str(value)) if name in MONEY_PARAMETERS and value is not None else value
        for name, value in parameters.items()
    }


@contextmanager
def _transaction(db: Session, action: str, user_id: str):
    """Commit the writes of one resolution change, rolling back on any failure"""
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Resolution {action} rolled back: {e}", extra={"user_id": user_id})
        raise PersistenceError(f"Could not {action} resolution: {e}") from e
    except Exception:
        db.rollback()
        raise


def create_resolution(
    db: Session, user_id: str, resolution_type: str, key: str, parameters: Dict
) -> ResolutionRecord:
    """
    Create a resolution for a month.

    Raises:
        ValidationError: bad month key, type or missing parameters
        ResolutionLimitError: the month already holds the maximum number of resolutions
    """
    parse_month_key(key)
    cleaned = validate_parameters(resolution_type, parameters)

    repo = ResolutionRepository(db)
    if repo.count_for_month(user_id, key) >= settings.max_resolutions_per_month:
        raise ResolutionLimitError(f"At most {settings.max_resolutions_per_month} resolutions per month")

    with _transaction(db, "create", user_id):
        resolution = repo.create_resolution(user_id, ResolutionType(resolution_type), key, _to_columns(cleaned))
    return resolution


def list_resolutions(db: Session, user_id: str, key: str) -> List[ResolutionRecord]:
    parse_month_key(key)
    return ResolutionRepository(db).list_for_month(user_id, key)


def _get(db: Session, user_id: str, resolution_id: uuid.UUID) -> ResolutionRecord:
    resolution = ResolutionRepository(db).get_for_user(resolution_id, user_id)
    if resolution is None:
        raise NotFoundError("Resolution not found")
    return resolution


def update_resolution(db: Session, user_id: str, resolution_id: uuid.UUID, parameters: Dict) -> ResolutionRecord:
    """Replace the parameters of a resolution; its type and month never change"""
    resolution = _get(db, user_id, resolution_id)
    cleaned = validate_parameters(resolution.type, parameters)
    with _transaction(db, "update", user_id):
        ResolutionRepository(db).update_parameters(resolution, _to_columns(cleaned))
    return resolution


def delete_resolution(db: Session, user_id: str, resolution_id: uuid.UUID) -> None:
    resolution = _get(db, user_id, resolution_id)
    with _transaction(db, "delete", user_id):
        ResolutionRepository(db).delete(resolution)


def resolution_statuses(
    db: Session, user_id: str, key: str, now: Optional[datetime] = None
) -> List[ResolutionStatus]:
    """Evaluate every resolution of a month against that month and the one before"""
    now = now or datetime.now()
    start, end = month_bounds(key)
    prev_start, prev_end = month_bounds(previous_month_key(key))

    ledger = LedgerRepository(db)
    window = [to_ledger_entry(r) for r in ledger.list_between(user_id, start, end)]
    previous_window = [to_ledger_entry(r) for r in ledger.list_between(user_id, prev_start, prev_end)]
    is_current = key == month_key(now)

    statuses = []
    for record in ResolutionRepository(db).list_for_month(user_id, key):
        status = evaluate_resolution(to_resolution(record), window, previous_window, is_current)
        record_resolution(record.type.value, status.is_met)
        statuses.append(status)
    return statuses
