"""Spend and rating summaries for a month or week"""

from typing import List, Optional

from expense_ledger.domain.models import LedgerEntry, MonthSummary, PeriodStatistics, RatingStatus
from expense_ledger.domain.rating import MAX_ANSWER, MIN_ANSWER


def rated_scores(entries: List[LedgerEntry]) -> List[float]:
    """Scores of RATED entries; lifesaving and unrated ones never count"""
    return [
        e.rating.score
        for e in entries
        if e.rating.status == RatingStatus.RATED and e.rating.score is not None
    ]


def average_rating(entries: List[LedgerEntry]) -> Optional[float]:
    scores = rated_scores(entries)
    return sum(scores) / len(scores) if scores else None


def summarize_month(month_key: str, entries: List[LedgerEntry]) -> MonthSummary:
    return MonthSummary(
        month_key=month_key,
        total_spent=sum(float(e.amount) for e in entries),
        count_unrated=sum(1 for e in entries if e.rating.status == RatingStatus.UNRATED),
    )


def summarize_period(entries: List[LedgerEntry], comparison_entries: List[LedgerEntry]) -> PeriodStatistics:
    """
    Totals and plain average rating of a period.

    comparison_entries are the entries of the most recent earlier period that
    had any rated entries (empty when none was found).
    """
    avg_rating = average_rating(entries)
    comparison_avg = average_rating(comparison_entries)
    rating_diff = avg_rating - comparison_avg if avg_rating is not None and comparison_avg is not None else None

    return PeriodStatistics(
        total_spent=sum(float(e.amount) for e in entries),
        avg_rating=avg_rating,
        rating_diff=rating_diff,
        has_comparison=bool(rated_scores(comparison_entries)),
        ratings_for_density=[s for s in rated_scores(entries) if MIN_ANSWER <= s <= MAX_ANSWER],
    )
