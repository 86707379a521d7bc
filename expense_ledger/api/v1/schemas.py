"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from expense_ledger.domain.models import (
    AffectivePeriod,
    AmountUnit,
    IntervalType,
    LedgerEntry,
    Planning,
    RatingInput,
    RatingStatus,
    ResolutionType,
)


class CreateExpenseRequest(BaseModel):
    """Request body for POST /v1/expenses"""

    amount: Decimal = Field(..., gt=0, description="Amount in euros")
    purpose: str = Field(..., min_length=1)
    is_recurring: bool = False
    interval_type: Optional[IntervalType] = None
    interval_every: Optional[int] = None


class CreateExpenseResponse(BaseModel):
    definition_id: str
    entry_id: str


class LedgerEntrySchema(BaseModel):
    """Single materialized charge"""

    id: str
    definition_id: str
    purpose: str
    amount: float
    charged_at: datetime
    is_recurring: bool
    interval_snapshot: str
    rating_status: RatingStatus
    rating_value: Optional[float] = None

    @classmethod
    def from_entry(cls, entry: LedgerEntry, **extra) -> "LedgerEntrySchema":
        return cls(
            id=str(entry.id),
            definition_id=str(entry.definition_id),
            purpose=entry.purpose,
            amount=float(entry.amount),
            charged_at=entry.charged_at,
            is_recurring=entry.is_recurring,
            interval_snapshot=entry.interval_snapshot,
            rating_status=entry.rating.status,
            rating_value=entry.rating.score,
            **extra,
        )


class MonthExpensesResponse(BaseModel):
    """Response for GET /v1/expenses/current-month"""

    month_key: str
    is_current_month: bool
    expenses: List[LedgerEntrySchema]


class MonthSummaryResponse(BaseModel):
    month_key: str
    total_spent: float
    count_unrated: int


class UnratedEntrySchema(LedgerEntrySchema):
    """Unrated entry; aggregates are only set for recurring definitions"""

    times_charged: Optional[int] = None
    total_paid: Optional[float] = None


class RatingRequest(BaseModel):
    """Request body for POST/PUT /v1/expenses/{entry_id}/rate"""

    lifesaving: bool = False
    q1_happy: Optional[float] = None
    q2_value: Optional[float] = None
    q3_repeat_now: Optional[bool] = None
    q4_need_elsewhere: Optional[bool] = None
    q5_planned: Optional[Planning] = None

    def to_input(self) -> RatingInput:
        return RatingInput(
            lifesaving=self.lifesaving,
            q1_happy=self.q1_happy,
            q2_value=self.q2_value,
            q3_repeat_now=self.q3_repeat_now,
            q4_need_elsewhere=self.q4_need_elsewhere,
            q5_planned=self.q5_planned,
        )


class RatingResponse(BaseModel):
    id: str
    rating_status: RatingStatus
    rating_value: Optional[float] = None
    rated_at: Optional[datetime] = None


class NextChargeResponse(BaseModel):
    """Response for GET /v1/expenses/definitions/{definition_id}/next-charge"""

    has_next_charge: bool
    next_charge_date: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


class ResolutionParameters(BaseModel):
    """Parameters of a resolution; only those of its type are kept"""

    amount_threshold: Optional[float] = Field(None, ge=0)
    rating_threshold: Optional[float] = Field(None, ge=0)
    unit: Optional[AmountUnit] = None
    target_avg_rating: Optional[float] = Field(None, ge=0)
    reduction_amount: Optional[float] = Field(None, ge=0)
    reduction_unit: Optional[AmountUnit] = None
    max_affective_amount: Optional[float] = Field(None, ge=0)
    max_affective_count: Optional[int] = Field(None, ge=0)
    max_affective_period: Optional[AffectivePeriod] = None


class CreateResolutionRequest(ResolutionParameters):
    """Request body for POST /v1/resolutions"""

    type: ResolutionType
    month_key: str = Field(..., pattern=r"^\d{4}-\d{2}$")


class ResolutionSchema(ResolutionParameters):
    id: str
    type: ResolutionType
    month_key: str


class CreateResolutionResponse(BaseModel):
    id: str
    message: str


class ResolutionStatusSchema(BaseModel):
    id: str
    is_met: bool
    current: float
    target: float
    description: str


class StatisticsResponse(BaseModel):
    """Response for GET /v1/statistics"""

    period_type: str
    period_key: str
    expenses: List[LedgerEntrySchema]
    total_spent: float
    avg_rating: Optional[float] = None
    rating_diff: Optional[float] = None
    has_comparison: bool
    ratings_for_density: List[float]
