"""Unit tests for resolution evaluation"""

import uuid
import pytest
from datetime import datetime
from expense_ledger.domain.exceptions import ValidationError
from expense_ledger.domain.models import (
    AffectivePeriod,
    AmountUnit,
    Planning,
    RatingStatus,
    Resolution,
    ResolutionType,
)
from expense_ledger.domain.resolutions import evaluate_resolution, validate_parameters

RATED = RatingStatus.RATED


def _resolution(resolution_type, **params):
    return Resolution(id=uuid.uuid4(), user_id="u1", type=resolution_type, month_key="2024-03", **params)


def test_under_amount_for_rating_euro(make_entry):
    resolution = _resolution(
        ResolutionType.UNDER_AMOUNT_FOR_RATING, amount_threshold=50.0, rating_threshold=5.0, unit=AmountUnit.EURO
    )
    window = [
        make_entry(30, datetime(2024, 3, 2), RATED, 3.2),
        make_entry(15, datetime(2024, 3, 3), RATED, 4.99),
        make_entry(100, datetime(2024, 3, 4), RATED, 8.0),
        make_entry(200, datetime(2024, 3, 5), RatingStatus.UNRATED),
        make_entry(80, datetime(2024, 3, 6), RatingStatus.LIFESAVING, 11.0),
    ]

    status = evaluate_resolution(resolution, window, [], is_current_period=True)

    assert status.is_met is True
    assert status.current == pytest.approx(45.0)
    assert status.target == 50.0
    assert status.description == "45.00 € / 50.00 €"


def test_under_amount_for_rating_percent(make_entry):
    resolution = _resolution(
        ResolutionType.UNDER_AMOUNT_FOR_RATING, amount_threshold=20.0, rating_threshold=5.0, unit=AmountUnit.PERCENT
    )
    window = [
        make_entry(25, datetime(2024, 3, 2), RATED, 2.0),
        make_entry(75, datetime(2024, 3, 3), RATED, 9.0),
    ]

    status = evaluate_resolution(resolution, window, [], is_current_period=True)

    assert status.current == pytest.approx(25.0)
    assert status.is_met is False
    assert status.description == "25.0% / 20.0%"


def test_under_amount_for_rating_percent_empty_window():
    resolution = _resolution(
        ResolutionType.UNDER_AMOUNT_FOR_RATING, amount_threshold=10.0, rating_threshold=5.0, unit=AmountUnit.PERCENT
    )
    status = evaluate_resolution(resolution, [], [], is_current_period=True)
    assert status.current == 0.0
    assert status.is_met is True


def test_target_avg_rating_is_amount_weighted(make_entry):
    resolution = _resolution(ResolutionType.TARGET_AVG_RATING, target_avg_rating=6.0)
    window = [
        make_entry(90, datetime(2024, 3, 2), RATED, 8.0),
        make_entry(10, datetime(2024, 3, 3), RATED, 2.0),
        make_entry(500, datetime(2024, 3, 4), RatingStatus.LIFESAVING, 11.0),
    ]

    status = evaluate_resolution(resolution, window, [], is_current_period=True)

    # (8*90 + 2*10) / 100 = 7.4, an unweighted mean would be 5.0
    assert status.current == pytest.approx(7.4)
    assert status.is_met is True
    assert status.description == "7.40 / 6.00"


def test_target_avg_rating_without_ratings_not_met(make_entry):
    resolution = _resolution(ResolutionType.TARGET_AVG_RATING, target_avg_rating=6.0)
    window = [make_entry(20, datetime(2024, 3, 2))]

    status = evaluate_resolution(resolution, window, [], is_current_period=True)

    assert status.is_met is False
    assert status.current == 0.0
    assert status.description == "No ratings"


def test_less_than_last_month_euro(make_entry):
    resolution = _resolution(
        ResolutionType.LESS_THAN_LAST_MONTH, reduction_amount=50.0, reduction_unit=AmountUnit.EURO
    )
    previous = [make_entry(300, datetime(2024, 2, 10))]
    window = [make_entry(240, datetime(2024, 3, 10))]

    status = evaluate_resolution(resolution, window, previous, is_current_period=True)

    assert status.target == pytest.approx(250.0)
    assert status.current == pytest.approx(240.0)
    assert status.is_met is True


def test_less_than_last_month_percent(make_entry):
    resolution = _resolution(
        ResolutionType.LESS_THAN_LAST_MONTH, reduction_amount=10.0, reduction_unit=AmountUnit.PERCENT
    )
    previous = [make_entry(200, datetime(2024, 2, 10))]
    window = [make_entry(185, datetime(2024, 3, 10))]

    status = evaluate_resolution(resolution, window, previous, is_current_period=True)

    assert status.target == pytest.approx(180.0)
    assert status.is_met is False
    assert status.description == "185.00 € / 180.00 €"


def test_no_affective_above_amount(make_entry):
    resolution = _resolution(ResolutionType.NO_AFFECTIVE_ABOVE_AMOUNT, max_affective_amount=30.0)
    window = [
        make_entry(30, datetime(2024, 3, 2), RATED, 5.0, Planning.AFFEKTIV),
        make_entry(45, datetime(2024, 3, 3), RATED, 5.0, Planning.AFFEKTIV),
        make_entry(99, datetime(2024, 3, 4), RATED, 5.0, Planning.DURCHDACHT),
    ]

    status = evaluate_resolution(resolution, window, [], is_current_period=True)

    assert status.current == 1
    assert status.target == 0
    assert status.is_met is False


def test_max_affective_per_week_takes_worst_week(make_entry):
    resolution = _resolution(
        ResolutionType.MAX_AFFECTIVE_PER_PERIOD, max_affective_count=3, max_affective_period=AffectivePeriod.WEEK
    )
    # Week of Mon 2024-03-04: two impulsive; week of Mon 2024-03-18: five impulsive
    week1 = [make_entry(5, datetime(2024, 3, day), RATED, 4.0, Planning.AFFEKTIV) for day in (4, 10)]
    week3 = [make_entry(5, datetime(2024, 3, day), RATED, 4.0, Planning.AFFEKTIV) for day in (18, 19, 20, 22, 24)]
    planned = [make_entry(5, datetime(2024, 3, 21), RATED, 7.0, Planning.DURCHDACHT)]

    status = evaluate_resolution(resolution, week1 + week3 + planned, [], is_current_period=True)

    assert status.current == 5
    assert status.is_met is False
    assert status.description == "5 / 3"


def test_max_affective_per_month_counts_whole_window(make_entry):
    resolution = _resolution(
        ResolutionType.MAX_AFFECTIVE_PER_PERIOD, max_affective_count=7, max_affective_period=AffectivePeriod.MONTH
    )
    window = [make_entry(5, datetime(2024, 3, day), RATED, 4.0, Planning.AFFEKTIV) for day in (4, 10, 18, 19, 20, 22, 24)]

    status = evaluate_resolution(resolution, window, [], is_current_period=True)

    assert status.current == 7
    assert status.is_met is True


def test_past_period_always_met(make_entry):
    resolution = _resolution(ResolutionType.NO_AFFECTIVE_ABOVE_AMOUNT, max_affective_amount=10.0)
    window = [make_entry(500, datetime(2024, 3, 2), RATED, 1.0, Planning.AFFEKTIV)]

    current = evaluate_resolution(resolution, window, [], is_current_period=True)
    past = evaluate_resolution(resolution, window, [], is_current_period=False)

    assert current.is_met is False
    assert past.is_met is True
    assert past.current == current.current
    assert past.description == current.description


def test_validate_parameters_drops_foreign_parameters():
    cleaned = validate_parameters(
        "TARGET_AVG_RATING", {"target_avg_rating": 7.0, "amount_threshold": 100.0, "unit": "EURO"}
    )
    assert cleaned["target_avg_rating"] == 7.0
    assert cleaned["amount_threshold"] is None
    assert cleaned["unit"] is None


def test_validate_parameters_requires_type_parameters():
    with pytest.raises(ValidationError):
        validate_parameters("MAX_AFFECTIVE_PER_PERIOD", {"max_affective_count": 2})
    with pytest.raises(ValidationError):
        validate_parameters("SPEND_LESS", {})
    with pytest.raises(ValidationError):
        validate_parameters("LESS_THAN_LAST_MONTH", {"reduction_amount": 5, "reduction_unit": "DOLLAR"})
