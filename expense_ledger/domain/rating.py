"""Rating engine - turns the five-question questionnaire into a single score"""

import math
from datetime import datetime
from typing import Optional

from expense_ledger.domain.exceptions import ValidationError
from expense_ledger.domain.models import Planning, Rating, RatingInput, RatingStatus

# Above the 0-10 scale; lifesaving entries are excluded from averages
LIFESAVING_SCORE = 11.0

MIN_ANSWER = 0
MAX_ANSWER = 10

HAPPY_WEIGHT = 2
VALUE_WEIGHT = 2.5
REPEAT_YES = 24
REPEAT_NO = 6
PLANNED_DELIBERATE = 15
PLANNED_IMPULSIVE = 4.5
DIVISOR = 9

# q4 ("needed the money elsewhere") penalty: halve low scores, trim high ones
NEED_ELSEWHERE_THRESHOLD = 7
NEED_ELSEWHERE_LOW_FACTOR = 0.5
NEED_ELSEWHERE_HIGH_FACTOR = 0.8


def _round_half_up(value: float, places: int = 2) -> float:
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def _validate(rating_input: RatingInput) -> Planning:
    for name in ("q1_happy", "q2_value"):
        value = getattr(rating_input, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{name} must be a number")
        if not math.isfinite(value) or value < MIN_ANSWER or value > MAX_ANSWER:
            raise ValidationError(f"{name} must be between {MIN_ANSWER} and {MAX_ANSWER}")

    for name in ("q3_repeat_now", "q4_need_elsewhere"):
        if not isinstance(getattr(rating_input, name), bool):
            raise ValidationError(f"{name} must be true or false")

    try:
        return Planning(rating_input.q5_planned)
    except ValueError as e:
        raise ValidationError(f"q5_planned must be one of {[p.value for p in Planning]}") from e


def compute_rating(rating_input: RatingInput) -> float:
    """
    Compute the rating score for a questionnaire.

    Formula:
        base  = (q1*2 + q2*2.5 + (24 if q3 else 6) + (15 if planned else 4.5)) / 9
        final = base/2 if base < 7 else base*0.8   (only when q4 is true)

    Returns 11.0 for lifesaving expenses, otherwise final rounded to 2 places.

    Raises:
        ValidationError: q1/q2 outside [0, 10] or incomplete answers
    """
    if rating_input.lifesaving:
        return LIFESAVING_SCORE

    planned = _validate(rating_input)

    q3_mapped = REPEAT_YES if rating_input.q3_repeat_now else REPEAT_NO
    q5_mapped = PLANNED_DELIBERATE if planned == Planning.DURCHDACHT else PLANNED_IMPULSIVE

    base = (
        rating_input.q1_happy * HAPPY_WEIGHT
        + rating_input.q2_value * VALUE_WEIGHT
        + q3_mapped
        + q5_mapped
    ) / DIVISOR

    if rating_input.q4_need_elsewhere:
        if base < NEED_ELSEWHERE_THRESHOLD:
            final = base * NEED_ELSEWHERE_LOW_FACTOR
        else:
            final = base * NEED_ELSEWHERE_HIGH_FACTOR
    else:
        final = base

    return _round_half_up(final)


def build_rating(rating_input: RatingInput, rated_at: Optional[datetime] = None) -> Rating:
    """Rating sub-record for an entry; lifesaving clears all answers"""
    score = compute_rating(rating_input)
    rated_at = rated_at or datetime.now()

    if rating_input.lifesaving:
        return Rating(status=RatingStatus.LIFESAVING, score=score, rated_at=rated_at)

    return Rating(
        status=RatingStatus.RATED,
        score=score,
        q1_happy=rating_input.q1_happy,
        q2_value=rating_input.q2_value,
        q3_repeat_now=rating_input.q3_repeat_now,
        q4_need_elsewhere=rating_input.q4_need_elsewhere,
        q5_planned=Planning(rating_input.q5_planned),
        rated_at=rated_at,
    )
