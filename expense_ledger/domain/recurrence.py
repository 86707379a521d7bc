"""Next-due computation for recurring expense definitions"""

from datetime import datetime
from typing import Optional

from expense_ledger.domain.exceptions import ValidationError
from expense_ledger.domain.models import IntervalType
from expense_ledger.utils.date_utils import add_days, add_months_anchor, add_weeks, add_years_anchor

INTERVAL_LABELS = {
    IntervalType.DAYS: "days",
    IntervalType.WEEKS: "weeks",
    IntervalType.MONTHS: "months",
    IntervalType.YEARS: "years",
}


def validate_interval(interval_type, interval_every) -> IntervalType:
    """Parse an interval kind and check its multiplier"""
    try:
        kind = IntervalType(interval_type)
    except ValueError as e:
        raise ValidationError(f"Unknown interval type: {interval_type!r}") from e

    if kind != IntervalType.NONE:
        if isinstance(interval_every, bool) or not isinstance(interval_every, int) or interval_every < 1:
            raise ValidationError("interval_every must be a positive integer")
    return kind


def anchor_day(definition) -> int:
    """Fixed day-of-month for MONTHS/YEARS, falling back to the start date's day"""
    if definition.anchor_day_of_month is not None:
        return definition.anchor_day_of_month
    return definition.start_date.day


def next_due(definition, from_date: datetime) -> Optional[datetime]:
    """
    Next charge date after from_date, or None for non-recurring definitions.

    Works on any object exposing the ExpenseDefinition attributes, including
    the ORM record.
    """
    if not definition.is_recurring:
        return None

    kind = validate_interval(definition.interval_type, definition.interval_every)
    every = definition.interval_every

    if kind == IntervalType.DAYS:
        return add_days(from_date, every)
    if kind == IntervalType.WEEKS:
        return add_weeks(from_date, every)
    if kind == IntervalType.MONTHS:
        return add_months_anchor(from_date, every, anchor_day(definition))
    if kind == IntervalType.YEARS:
        return add_years_anchor(from_date, every, anchor_day(definition))
    return None


def charge_cursor(definition) -> datetime:
    return definition.last_charged_at or definition.start_date


def next_charge(definition, now: datetime) -> Optional[datetime]:
    """Next due date if it still lies in the future, else None"""
    due = next_due(definition, charge_cursor(definition))
    if due is None or due <= now:
        return None
    return due


def has_future_charge(definition, now: datetime) -> bool:
    return next_charge(definition, now) is not None


def interval_snapshot(definition) -> str:
    """Human-readable recurrence, stored on each ledger entry"""
    if not definition.is_recurring or IntervalType(definition.interval_type) == IntervalType.NONE:
        return "one-off"
    return f"every {definition.interval_every} {INTERVAL_LABELS[IntervalType(definition.interval_type)]}"
