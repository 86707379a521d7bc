"""Lazy catch-up of recurring charges"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from expense_ledger.domain.exceptions import IdempotencyConflict, PersistenceError
from expense_ledger.domain.recurrence import charge_cursor, next_due
from expense_ledger.infrastructure.database.models import ExpenseDefinitionRecord
from expense_ledger.infrastructure.database.repositories import DefinitionRepository, LedgerRepository
from expense_ledger.infrastructure.observability.logging import log_catch_up
from expense_ledger.infrastructure.observability.metrics import catch_up_duration_histogram, record_catch_up

logger = logging.getLogger(__name__)


@dataclass
class CatchUpResult:
    """What one call to ensure_charges_up_to_now did"""

    definitions_checked: int = 0
    charges_created: Dict[uuid.UUID, int] = field(default_factory=dict)
    conflicts: int = 0
    failures: int = 0

    @property
    def total_created(self) -> int:
        return sum(self.charges_created.values())


def _charge_once(db: Session, definition: ExpenseDefinitionRecord, definition_id: uuid.UUID, due: datetime) -> None:
    """
    Materialize one charge and bump the definition's aggregates in a single transaction.

    Raises:
        IdempotencyConflict: the entry already exists (found up front or via the unique constraint)
        PersistenceError: any other database failure; the transaction is rolled back
    """
    ledger = LedgerRepository(db)
    definitions = DefinitionRepository(db)

    try:
        if ledger.exists(definition_id, due):
            db.rollback()
            raise IdempotencyConflict(definition_id, due)

        ledger.add_entry(definition, due)
        definitions.record_charge(definition, definition.amount, due)
        db.commit()

    except IntegrityError as e:
        db.rollback()
        raise IdempotencyConflict(definition_id, due) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Charge for definition {definition_id} at {due.isoformat()} failed: {e}") from e


def _catch_up_definition(
    db: Session, definition: ExpenseDefinitionRecord, now: datetime, result: CatchUpResult
) -> None:
    definition_id = definition.id
    user_id = definition.user_id
    cursor = charge_cursor(definition)
    created = 0

    while True:
        due = next_due(definition, cursor)
        if due is None or due > now:
            break

        try:
            _charge_once(db, definition, definition_id, due)
        except IdempotencyConflict:
            result.conflicts += 1
            logger.info(
                "Charge already materialized, stopping catch-up for definition",
                extra={"user_id": user_id, "definition_id": str(definition_id), "due": due.isoformat()},
            )
            break
        except PersistenceError as e:
            result.failures += 1
            logger.error(
                f"Charge transaction rolled back: {e}",
                extra={"user_id": user_id, "definition_id": str(definition_id), "due": due.isoformat()},
            )
            break

        # Only advance past a committed charge; a failed one is retried next call
        cursor = due
        created += 1

    if created:
        result.charges_created[definition_id] = created


def ensure_charges_up_to_now(db: Session, user_id: str, now: Optional[datetime] = None) -> CatchUpResult:
    """
    Materialize every recurring charge of the user that is due by now.

    Each charge commits in its own transaction, oldest due date first. The
    call is idempotent: running it again without time passing creates nothing,
    and a partially completed run resumes from last_charged_at.
    """
    now = now or datetime.now()
    start_time = time.time()
    result = CatchUpResult()

    definitions = DefinitionRepository(db).list_recurring(user_id)
    for definition in definitions:
        result.definitions_checked += 1
        _catch_up_definition(db, definition, now, result)

    duration = time.time() - start_time
    catch_up_duration_histogram.observe(duration)
    record_catch_up(result.total_created, result.conflicts, result.failures)
    log_catch_up(
        user_id,
        result.definitions_checked,
        result.total_created,
        result.conflicts,
        result.failures,
        duration * 1000,
    )
    return result
