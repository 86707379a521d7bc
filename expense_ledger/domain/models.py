"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class IntervalType(str, Enum):
    """How often a definition recurs"""

    NONE = "NONE"
    DAYS = "DAYS"
    WEEKS = "WEEKS"
    MONTHS = "MONTHS"
    YEARS = "YEARS"


class RatingStatus(str, Enum):
    UNRATED = "UNRATED"
    RATED = "RATED"
    LIFESAVING = "LIFESAVING"


class Planning(str, Enum):
    """Answer to "was this purchase planned?" - AFFEKTIV marks an impulsive one"""

    DURCHDACHT = "DURCHDACHT"
    AFFEKTIV = "AFFEKTIV"


class ResolutionType(str, Enum):
    UNDER_AMOUNT_FOR_RATING = "UNDER_AMOUNT_FOR_RATING"
    TARGET_AVG_RATING = "TARGET_AVG_RATING"
    LESS_THAN_LAST_MONTH = "LESS_THAN_LAST_MONTH"
    NO_AFFECTIVE_ABOVE_AMOUNT = "NO_AFFECTIVE_ABOVE_AMOUNT"
    MAX_AFFECTIVE_PER_PERIOD = "MAX_AFFECTIVE_PER_PERIOD"


class AmountUnit(str, Enum):
    EURO = "EURO"
    PERCENT = "PERCENT"


class AffectivePeriod(str, Enum):
    WEEK = "WEEK"
    MONTH = "MONTH"


@dataclass
class ExpenseDefinition:
    """Template for a one-off or recurring expense"""

    id: uuid.UUID
    user_id: str
    purpose: str
    amount: Decimal
    is_recurring: bool
    interval_type: IntervalType
    interval_every: int
    start_date: datetime
    anchor_day_of_month: Optional[int] = None
    times_charged: int = 0
    total_paid: Decimal = Decimal("0.00")
    last_charged_at: Optional[datetime] = None


@dataclass
class RatingInput:
    """Questionnaire answers submitted for one ledger entry"""

    lifesaving: bool = False
    q1_happy: Optional[float] = None
    q2_value: Optional[float] = None
    q3_repeat_now: Optional[bool] = None
    q4_need_elsewhere: Optional[bool] = None
    q5_planned: Optional[Planning] = None


@dataclass
class Rating:
    """Rating sub-record of a ledger entry; inputs are only set when RATED"""

    status: RatingStatus = RatingStatus.UNRATED
    score: Optional[float] = None
    q1_happy: Optional[float] = None
    q2_value: Optional[float] = None
    q3_repeat_now: Optional[bool] = None
    q4_need_elsewhere: Optional[bool] = None
    q5_planned: Optional[Planning] = None
    rated_at: Optional[datetime] = None


@dataclass
class LedgerEntry:
    """One materialized charge, snapshotted from its definition"""

    id: uuid.UUID
    definition_id: uuid.UUID
    user_id: str
    purpose: str
    amount: Decimal
    charged_at: datetime
    month_key: str
    is_recurring: bool
    interval_snapshot: str
    rating: Rating = field(default_factory=Rating)


@dataclass
class Resolution:
    """Monthly goal; only the parameters of its type are set"""

    id: uuid.UUID
    user_id: str
    type: ResolutionType
    month_key: str
    amount_threshold: Optional[float] = None
    rating_threshold: Optional[float] = None
    unit: Optional[AmountUnit] = None
    target_avg_rating: Optional[float] = None
    reduction_amount: Optional[float] = None
    reduction_unit: Optional[AmountUnit] = None
    max_affective_amount: Optional[float] = None
    max_affective_count: Optional[int] = None
    max_affective_period: Optional[AffectivePeriod] = None


@dataclass
class ResolutionStatus:
    """Derived progress of a resolution over its window"""

    resolution_id: uuid.UUID
    is_met: bool
    current: float
    target: float
    description: str


@dataclass
class MonthSummary:
    month_key: str
    total_spent: float
    count_unrated: int


@dataclass
class PeriodStatistics:
    """Spend and rating figures for one month or week"""

    total_spent: float
    avg_rating: Optional[float]
    rating_diff: Optional[float]
    has_comparison: bool
    ratings_for_density: List[float]
