"""SQLAlchemy ORM models for definitions, ledger entries and resolutions"""

import uuid
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from expense_ledger.domain.models import (
    AffectivePeriod,
    AmountUnit,
    IntervalType,
    Planning,
    RatingStatus,
    ResolutionType,
)

Base = declarative_base()


def _enum(enum_cls):
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)


class ExpenseDefinitionRecord(Base):
    """Template for one-off and recurring expenses, with running aggregates"""

    __tablename__ = "expense_definition"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    purpose = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    interval_type = Column(_enum(IntervalType), nullable=False, default=IntervalType.NONE)
    interval_every = Column(Integer, nullable=False, default=1)
    start_date = Column(DateTime, nullable=False)
    anchor_day_of_month = Column(Integer, nullable=True)
    times_charged = Column(Integer, nullable=False, default=0)
    total_paid = Column(Numeric(12, 2), nullable=False, default=0)
    last_charged_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    instances = relationship("ExpenseInstanceRecord", back_populates="definition", passive_deletes=True)


class ExpenseInstanceRecord(Base):
    """Materialized charge; one per (definition_id, charged_at)"""

    __tablename__ = "expense_instance"
    __table_args__ = (UniqueConstraint("definition_id", "charged_at", name="uq_instance_definition_charged_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    definition_id = Column(
        UUID(as_uuid=True), ForeignKey("expense_definition.id", ondelete="CASCADE"), nullable=False
    )
    purpose_snapshot = Column(Text, nullable=False)
    amount_snapshot = Column(Numeric(12, 2), nullable=False)
    charged_at = Column(DateTime, nullable=False, index=True)
    month_key = Column(String(7), nullable=False, index=True)
    is_recurring_snapshot = Column(Boolean, nullable=False)
    interval_snapshot = Column(Text, nullable=False)

    rating_status = Column(_enum(RatingStatus), nullable=False, default=RatingStatus.UNRATED)
    rating_value = Column(Float, nullable=True)
    q1_happy = Column(Float, nullable=True)
    q2_value = Column(Float, nullable=True)
    q3_repeat_now = Column(Boolean, nullable=True)
    q4_need_elsewhere = Column(Boolean, nullable=True)
    q5_planned = Column(_enum(Planning), nullable=True)
    rated_at = Column(DateTime, nullable=True)

    definition = relationship("ExpenseDefinitionRecord", back_populates="instances")


class ResolutionRecord(Base):
    """Monthly goal; columns not used by its type stay null"""

    __tablename__ = "resolution"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(_enum(ResolutionType), nullable=False)
    month_key = Column(String(7), nullable=False, index=True)
    amount_threshold = Column(Numeric(12, 2), nullable=True)
    rating_threshold = Column(Float, nullable=True)
    unit = Column(_enum(AmountUnit), nullable=True)
    target_avg_rating = Column(Float, nullable=True)
    reduction_amount = Column(Numeric(12, 2), nullable=True)
    reduction_unit = Column(_enum(AmountUnit), nullable=True)
    max_affective_amount = Column(Numeric(12, 2), nullable=True)
    max_affective_count = Column(Integer, nullable=True)
    max_affective_period = Column(_enum(AffectivePeriod), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
