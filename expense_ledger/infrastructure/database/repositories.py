"""Data access layer for definitions, ledger entries and resolutions"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from expense_ledger.infrastructure.database.models import (
    ExpenseDefinitionRecord,
    ExpenseInstanceRecord,
    ResolutionRecord,
)
from expense_ledger.domain.exceptions import ValidationError
from expense_ledger.domain.models import (
    ExpenseDefinition,
    IntervalType,
    LedgerEntry,
    Rating,
    RatingStatus,
    Resolution,
)
from expense_ledger.domain.recurrence import interval_snapshot
from expense_ledger.utils.date_utils import month_key

SORT_COLUMNS = {
    "date": ExpenseInstanceRecord.charged_at,
    "amount": ExpenseInstanceRecord.amount_snapshot,
    "rating": func.coalesce(ExpenseInstanceRecord.rating_value, 0),
}


class DefinitionRepository:
    """Repository for expense definitions"""

    def __init__(self, db: Session):
        self.db = db

    def create_definition(
        self,
        user_id: str,
        purpose: str,
        amount: Decimal,
        is_recurring: bool,
        interval_type: IntervalType,
        interval_every: int,
        start_date: datetime,
        anchor_day_of_month: Optional[int] = None,
    ) -> ExpenseDefinitionRecord:
        """Persist a definition with zero charges; callers record the first charge"""
        db_definition = ExpenseDefinitionRecord(
            user_id=user_id,
            purpose=purpose,
            amount=amount,
            is_recurring=is_recurring,
            interval_type=interval_type,
            interval_every=interval_every,
            start_date=start_date,
            anchor_day_of_month=anchor_day_of_month,
            times_charged=0,
            total_paid=Decimal("0.00"),
        )
        self.db.add(db_definition)
        self.db.flush()
        return db_definition

    def get_for_user(self, definition_id: uuid.UUID, user_id: str) -> Optional[ExpenseDefinitionRecord]:
        return (
            self.db.query(ExpenseDefinitionRecord)
            .filter(ExpenseDefinitionRecord.id == definition_id, ExpenseDefinitionRecord.user_id == user_id)
            .first()
        )

    def get_by_ids(self, definition_ids: List[uuid.UUID]) -> Dict[uuid.UUID, ExpenseDefinitionRecord]:
        if not definition_ids:
            return {}
        records = (
            self.db.query(ExpenseDefinitionRecord)
            .filter(ExpenseDefinitionRecord.id.in_(definition_ids))
            .all()
        )
        return {d.id: d for d in records}

    def list_recurring(self, user_id: str) -> List[ExpenseDefinitionRecord]:
        """Active recurring definitions, oldest first"""
        return (
            self.db.query(ExpenseDefinitionRecord)
            .filter(
                ExpenseDefinitionRecord.user_id == user_id,
                ExpenseDefinitionRecord.is_recurring.is_(True),
                ExpenseDefinitionRecord.interval_type != IntervalType.NONE,
            )
            .order_by(ExpenseDefinitionRecord.created_at.asc(), ExpenseDefinitionRecord.start_date.asc())
            .all()
        )

    def record_charge(self, definition: ExpenseDefinitionRecord, amount: Decimal, charged_at: datetime) -> None:
        """Bump aggregates in SQL so concurrent writers never lose an increment"""
        definition.times_charged = ExpenseDefinitionRecord.times_charged + 1
        definition.total_paid = ExpenseDefinitionRecord.total_paid + amount
        definition.last_charged_at = charged_at
        self.db.flush()

    def revert_charge(self, definition: ExpenseDefinitionRecord, amount: Decimal) -> None:
        definition.times_charged = ExpenseDefinitionRecord.times_charged - 1
        definition.total_paid = ExpenseDefinitionRecord.total_paid - amount
        self.db.flush()

    def delete(self, definition: ExpenseDefinitionRecord) -> None:
        self.db.delete(definition)
        self.db.flush()


class LedgerRepository:
    """Repository for materialized charges (expense instances)"""

    def __init__(self, db: Session):
        self.db = db

    def exists(self, definition_id: uuid.UUID, charged_at: datetime) -> bool:
        return (
            self.db.query(ExpenseInstanceRecord.id)
            .filter(
                ExpenseInstanceRecord.definition_id == definition_id,
                ExpenseInstanceRecord.charged_at == charged_at,
            )
            .first()
            is not None
        )

    def add_entry(self, definition: ExpenseDefinitionRecord, charged_at: datetime) -> ExpenseInstanceRecord:
        """Snapshot the definition's current purpose, amount and recurrence at charged_at"""
        db_instance = ExpenseInstanceRecord(
            user_id=definition.user_id,
            definition_id=definition.id,
            purpose_snapshot=definition.purpose,
            amount_snapshot=definition.amount,
            charged_at=charged_at,
            month_key=month_key(charged_at),
            is_recurring_snapshot=definition.is_recurring,
            interval_snapshot=interval_snapshot(definition),
            rating_status=RatingStatus.UNRATED,
        )
        self.db.add(db_instance)
        self.db.flush()
        return db_instance

    def get_for_user(self, entry_id: uuid.UUID, user_id: str) -> Optional[ExpenseInstanceRecord]:
        return (
            self.db.query(ExpenseInstanceRecord)
            .filter(ExpenseInstanceRecord.id == entry_id, ExpenseInstanceRecord.user_id == user_id)
            .first()
        )

    def list_for_month(
        self, user_id: str, key: str, sort_by: str = "date", order: str = "desc"
    ) -> List[ExpenseInstanceRecord]:
        if sort_by not in SORT_COLUMNS:
            raise ValidationError(f"Invalid sort_by: {sort_by!r}")
        if order not in ("asc", "desc"):
            raise ValidationError(f"Invalid order: {order!r}")

        column = SORT_COLUMNS[sort_by]
        return (
            self.db.query(ExpenseInstanceRecord)
            .filter(ExpenseInstanceRecord.user_id == user_id, ExpenseInstanceRecord.month_key == key)
            .order_by(column.asc() if order == "asc" else column.desc())
            .all()
        )

    def list_between(self, user_id: str, start: datetime, end: datetime) -> List[ExpenseInstanceRecord]:
        """Entries charged within [start, end], oldest first"""
        return (
            self.db.query(ExpenseInstanceRecord)
            .filter(
                ExpenseInstanceRecord.user_id == user_id,
                ExpenseInstanceRecord.charged_at >= start,
                ExpenseInstanceRecord.charged_at <= end,
            )
            .order_by(ExpenseInstanceRecord.charged_at.asc())
            .all()
        )

    def list_unrated(self, user_id: str, key: str) -> List[ExpenseInstanceRecord]:
        return (
            self.db.query(ExpenseInstanceRecord)
            .filter(
                ExpenseInstanceRecord.user_id == user_id,
                ExpenseInstanceRecord.month_key == key,
                ExpenseInstanceRecord.rating_status == RatingStatus.UNRATED,
            )
            .order_by(ExpenseInstanceRecord.charged_at.asc())
            .all()
        )

    def apply_rating(self, instance: ExpenseInstanceRecord, rating: Rating) -> None:
        """Overwrite the rating sub-record; answers of the previous state are cleared"""
        instance.rating_status = rating.status
        instance.rating_value = rating.score
        instance.q1_happy = rating.q1_happy
        instance.q2_value = rating.q2_value
        instance.q3_repeat_now = rating.q3_repeat_now
        instance.q4_need_elsewhere = rating.q4_need_elsewhere
        instance.q5_planned = rating.q5_planned
        instance.rated_at = rating.rated_at
        self.db.flush()

    def delete(self, instance: ExpenseInstanceRecord) -> None:
        self.db.delete(instance)
        self.db.flush()


class ResolutionRepository:
    """Repository for monthly resolutions"""

    def __init__(self, db: Session):
        self.db = db

    def count_for_month(self, user_id: str, key: str) -> int:
        return (
            self.db.query(func.count(ResolutionRecord.id))
            .filter(ResolutionRecord.user_id == user_id, ResolutionRecord.month_key == key)
            .scalar()
        )

    def create_resolution(self, user_id: str, resolution_type, key: str, parameters: Dict) -> ResolutionRecord:
        db_resolution = ResolutionRecord(user_id=user_id, type=resolution_type, month_key=key, **parameters)
        self.db.add(db_resolution)
        self.db.flush()
        return db_resolution

    def list_for_month(self, user_id: str, key: str) -> List[ResolutionRecord]:
        return (
            self.db.query(ResolutionRecord)
            .filter(ResolutionRecord.user_id == user_id, ResolutionRecord.month_key == key)
            .order_by(ResolutionRecord.created_at.asc())
            .all()
        )

    def get_for_user(self, resolution_id: uuid.UUID, user_id: str) -> Optional[ResolutionRecord]:
        return (
            self.db.query(ResolutionRecord)
            .filter(ResolutionRecord.id == resolution_id, ResolutionRecord.user_id == user_id)
            .first()
        )

    def update_parameters(self, resolution: ResolutionRecord, parameters: Dict) -> None:
        for name, value in parameters.items():
            setattr(resolution, name, value)
        self.db.flush()

    def delete(self, resolution: ResolutionRecord) -> None:
        self.db.delete(resolution)
        self.db.flush()


def _float_or_none(value) -> Optional[float]:
    return float(value) if value is not None else None


def to_definition(record: ExpenseDefinitionRecord) -> ExpenseDefinition:
    return ExpenseDefinition(
        id=record.id,
        user_id=record.user_id,
        purpose=record.purpose,
        amount=record.amount,
        is_recurring=record.is_recurring,
        interval_type=record.interval_type,
        interval_every=record.interval_every,
        start_date=record.start_date,
        anchor_day_of_month=record.anchor_day_of_month,
        times_charged=record.times_charged,
        total_paid=record.total_paid,
        last_charged_at=record.last_charged_at,
    )


def to_ledger_entry(record: ExpenseInstanceRecord) -> LedgerEntry:
    return LedgerEntry(
        id=record.id,
        definition_id=record.definition_id,
        user_id=record.user_id,
        purpose=record.purpose_snapshot,
        amount=record.amount_snapshot,
        charged_at=record.charged_at,
        month_key=record.month_key,
        is_recurring=record.is_recurring_snapshot,
        interval_snapshot=record.interval_snapshot,
        rating=Rating(
            status=record.rating_status,
            score=_float_or_none(record.rating_value),
            q1_happy=record.q1_happy,
            q2_value=record.q2_value,
            q3_repeat_now=record.q3_repeat_now,
            q4_need_elsewhere=record.q4_need_elsewhere,
            q5_planned=record.q5_planned,
            rated_at=record.rated_at,
        ),
    )


def to_resolution(record: ResolutionRecord) -> Resolution:
    return Resolution(
        id=record.id,
        user_id=record.user_id,
        type=record.type,
        month_key=record.month_key,
        amount_threshold=_float_or_none(record.amount_threshold),
        rating_threshold=_float_or_none(record.rating_threshold),
        unit=record.unit,
        target_avg_rating=_float_or_none(record.target_avg_rating),
        reduction_amount=_float_or_none(record.reduction_amount),
        reduction_unit=record.reduction_unit,
        max_affective_amount=_float_or_none(record.max_affective_amount),
        max_affective_count=record.max_affective_count,
        max_affective_period=record.max_affective_period,
    )
