"""Calendar arithmetic on naive local datetimes"""

import calendar
import re
from datetime import date, datetime, time, timedelta
from typing import Tuple

from expense_ledger.domain.exceptions import ValidationError

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
WEEK_KEY_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")


def add_days(d: datetime, days: int) -> datetime:
    return d + timedelta(days=days)


def add_weeks(d: datetime, weeks: int) -> datetime:
    return add_days(d, weeks * 7)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months_anchor(d: datetime, months: int, anchor_day: int | None = None) -> datetime:
    """
    Shift d by whole calendar months and pin the day to anchor_day.

    The day is clamped to the last day of the target month, so an anchor of 31
    lands on Feb 28/29, Apr 30 and so on, and returns to the 31st afterwards.
    Time of day is kept. Without an anchor the day of d is used.
    """
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1

    day_anchor = anchor_day if anchor_day is not None else d.day
    day = min(day_anchor, last_day_of_month(year, month))

    return d.replace(year=year, month=month, day=day)


def add_years_anchor(d: datetime, years: int, anchor_day: int | None = None) -> datetime:
    return add_months_anchor(d, years * 12, anchor_day)


def month_key(d: date) -> str:
    """Month key in YYYY-MM form"""
    return f"{d.year:04d}-{d.month:02d}"


def parse_month_key(key: str) -> Tuple[int, int]:
    match = MONTH_KEY_PATTERN.match(key or "")
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValidationError(f"Invalid month key: {key!r}")
    return int(match.group(1)), int(match.group(2))


def month_bounds(key: str) -> Tuple[datetime, datetime]:
    """First and last instant of the month (inclusive)"""
    year, month = parse_month_key(key)
    start = datetime(year, month, 1)
    end = datetime.combine(date(year, month, last_day_of_month(year, month)), time.max)
    return start, end


def previous_month_key(key: str) -> str:
    year, month = parse_month_key(key)
    return month_key(add_months_anchor(datetime(year, month, 1), -1))


def week_start(d: datetime) -> datetime:
    """Monday 00:00 of the week containing d"""
    day = d.date() if isinstance(d, datetime) else d
    return datetime.combine(day - timedelta(days=day.weekday()), time.min)


def week_end(d: datetime) -> datetime:
    """Sunday 23:59:59.999999 of the week containing d"""
    return datetime.combine((week_start(d) + timedelta(days=6)).date(), time.max)


def week_key(d: date) -> str:
    """ISO week key in YYYY-Www form"""
    iso_year, iso_week, _ = d.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def parse_week_key(key: str) -> Tuple[int, int]:
    match = WEEK_KEY_PATTERN.match(key or "")
    if not match:
        raise ValidationError(f"Invalid week key: {key!r}")
    year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(year, week, 1)
    except ValueError as e:
        raise ValidationError(f"Invalid week key: {key!r}") from e
    return year, week


def week_bounds(key: str) -> Tuple[datetime, datetime]:
    """Monday 00:00 and Sunday end of an ISO week"""
    year, week = parse_week_key(key)
    monday = datetime.combine(date.fromisocalendar(year, week, 1), time.min)
    return monday, week_end(monday)


def previous_week_key(key: str) -> str:
    monday, _ = week_bounds(key)
    return week_key(add_weeks(monday, -1))
