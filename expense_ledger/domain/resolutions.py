"""Resolution evaluation - progress of monthly goals against the ledger"""

from collections import Counter
from typing import Callable, Dict, List, Tuple

from expense_ledger.domain.exceptions import ValidationError
from expense_ledger.domain.models import (
    AffectivePeriod,
    AmountUnit,
    LedgerEntry,
    Planning,
    RatingStatus,
    Resolution,
    ResolutionStatus,
    ResolutionType,
)
from expense_ledger.utils.date_utils import week_start

# (is_met, current, target, description)
Evaluation = Tuple[bool, float, float, str]

# Parameters each resolution type needs
REQUIRED_PARAMETERS = {
    ResolutionType.UNDER_AMOUNT_FOR_RATING: ("amount_threshold", "rating_threshold", "unit"),
    ResolutionType.TARGET_AVG_RATING: ("target_avg_rating",),
    ResolutionType.LESS_THAN_LAST_MONTH: ("reduction_amount", "reduction_unit"),
    ResolutionType.NO_AFFECTIVE_ABOVE_AMOUNT: ("max_affective_amount",),
    ResolutionType.MAX_AFFECTIVE_PER_PERIOD: ("max_affective_count", "max_affective_period"),
}

ALL_PARAMETERS = sorted({name for names in REQUIRED_PARAMETERS.values() for name in names})

ENUM_PARAMETERS = {
    "unit": AmountUnit,
    "reduction_unit": AmountUnit,
    "max_affective_period": AffectivePeriod,
}


def validate_parameters(resolution_type, parameters: Dict) -> Dict:
    """
    Check a resolution's parameters and null out the ones its type ignores.

    Raises:
        ValidationError: unknown type or a required parameter is missing
    """
    try:
        kind = ResolutionType(resolution_type)
    except ValueError as e:
        raise ValidationError(f"Unknown resolution type: {resolution_type!r}") from e

    required = REQUIRED_PARAMETERS[kind]
    missing = [name for name in required if parameters.get(name) is None]
    if missing:
        raise ValidationError(f"{kind.value} requires {', '.join(missing)}")

    cleaned = {name: (parameters.get(name) if name in required else None) for name in ALL_PARAMETERS}
    for name, enum_cls in ENUM_PARAMETERS.items():
        if cleaned[name] is not None:
            try:
                cleaned[name] = enum_cls(cleaned[name])
            except ValueError as e:
                raise ValidationError(f"Invalid {name}: {cleaned[name]!r}") from e
    return cleaned


def _amount(entry: LedgerEntry) -> float:
    return float(entry.amount)


def _total(entries: List[LedgerEntry]) -> float:
    return sum(_amount(e) for e in entries)


def _is_rated(entry: LedgerEntry) -> bool:
    return entry.rating.status == RatingStatus.RATED and entry.rating.score is not None


def _is_affective(entry: LedgerEntry) -> bool:
    return entry.rating.q5_planned == Planning.AFFEKTIV


def _under_amount_for_rating(resolution: Resolution, window, previous_window) -> Evaluation:
    threshold = float(resolution.amount_threshold or 0)
    rating_threshold = float(resolution.rating_threshold or 0)

    low_rated = [e for e in window if _is_rated(e) and e.rating.score < rating_threshold]
    low_rated_total = _total(low_rated)

    if AmountUnit(resolution.unit) == AmountUnit.EURO:
        return (
            low_rated_total <= threshold,
            low_rated_total,
            threshold,
            f"{low_rated_total:.2f} € / {threshold:.2f} €",
        )

    window_total = _total(window)
    percent = (low_rated_total / window_total) * 100 if window_total > 0 else 0.0
    return percent <= threshold, percent, threshold, f"{percent:.1f}% / {threshold:.1f}%"


def _target_avg_rating(resolution: Resolution, window, previous_window) -> Evaluation:
    target = float(resolution.target_avg_rating or 0)
    rated = [e for e in window if _is_rated(e)]
    if not rated:
        return False, 0.0, target, "No ratings"

    total_amount = _total(rated)
    weighted_sum = sum(e.rating.score * _amount(e) for e in rated)
    average = weighted_sum / total_amount if total_amount > 0 else 0.0
    return average >= target, average, target, f"{average:.2f} / {target:.2f}"


def _less_than_last_month(resolution: Resolution, window, previous_window) -> Evaluation:
    reduction = float(resolution.reduction_amount or 0)
    current_total = _total(window)
    previous_total = _total(previous_window)

    if AmountUnit(resolution.reduction_unit) == AmountUnit.EURO:
        target = previous_total - reduction
    else:
        target = previous_total * (1 - reduction / 100)

    return current_total <= target, current_total, target, f"{current_total:.2f} € / {target:.2f} €"


def _no_affective_above_amount(resolution: Resolution, window, previous_window) -> Evaluation:
    max_amount = float(resolution.max_affective_amount or 0)
    count = sum(1 for e in window if _is_affective(e) and _amount(e) > max_amount)
    return count == 0, float(count), 0.0, f"{count} / 0"


def _max_affective_per_period(resolution: Resolution, window, previous_window) -> Evaluation:
    max_count = resolution.max_affective_count or 0
    affective = [e for e in window if _is_affective(e)]

    if AffectivePeriod(resolution.max_affective_period) == AffectivePeriod.WEEK:
        per_week = Counter(week_start(e.charged_at) for e in affective)
        count = max(per_week.values(), default=0)
    else:
        count = len(affective)

    return count <= max_count, float(count), float(max_count), f"{count} / {max_count}"


EVALUATORS: Dict[ResolutionType, Callable[..., Evaluation]] = {
    ResolutionType.UNDER_AMOUNT_FOR_RATING: _under_amount_for_rating,
    ResolutionType.TARGET_AVG_RATING: _target_avg_rating,
    ResolutionType.LESS_THAN_LAST_MONTH: _less_than_last_month,
    ResolutionType.NO_AFFECTIVE_ABOVE_AMOUNT: _no_affective_above_amount,
    ResolutionType.MAX_AFFECTIVE_PER_PERIOD: _max_affective_per_period,
}


def evaluate_resolution(
    resolution: Resolution,
    window: List[LedgerEntry],
    previous_window: List[LedgerEntry],
    is_current_period: bool,
) -> ResolutionStatus:
    """
    Evaluate one resolution over its month.

    Past periods are closed: they always report is_met=True, while current,
    target and description are still computed for display.
    """
    evaluator = EVALUATORS[ResolutionType(resolution.type)]
    is_met, current, target, description = evaluator(resolution, window, previous_window)

    return ResolutionStatus(
        resolution_id=resolution.id,
        is_met=is_met or not is_current_period,
        current=current,
        target=target,
        description=description,
    )
