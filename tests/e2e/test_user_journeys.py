"""
E2E tests for multi-step user journeys.

User personas:
- user_anna: logs daily spending over HTTP, rates it and sets goals
- user_subscriber: keeps monthly subscriptions and comes back after months away
- user_impulsive: buys on impulse and tracks a weekly limit across a month
"""

import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from expense_ledger.domain.models import Planning, RatingInput
from expense_ledger.services import expenses, resolutions
from expense_ledger.services.statistics import period_statistics
from expense_ledger.utils.date_utils import month_key

RATE_PLANNED = {"q1_happy": 9, "q2_value": 8, "q3_repeat_now": True, "q4_need_elsewhere": False, "q5_planned": "DURCHDACHT"}
RATE_REGRET = {"q1_happy": 1, "q2_value": 2, "q3_repeat_now": False, "q4_need_elsewhere": True, "q5_planned": "AFFEKTIV"}


@pytest.mark.integration
def test_user_anna_month_over_http(client: TestClient):
    """
    user_anna: logs, rates, sets a goal and checks progress
    Expected: goal missed by the regretted impulse buy until it is deleted
    """
    key = month_key(datetime.now())
    groceries = client.post("/v1/expenses", json={"amount": 62.4, "purpose": "Groceries"}).json()
    gadget = client.post("/v1/expenses", json={"amount": 120, "purpose": "Gadget"}).json()

    client.post(f"/v1/expenses/{groceries['entry_id']}/rate", json=RATE_PLANNED)
    client.post(f"/v1/expenses/{gadget['entry_id']}/rate", json=RATE_REGRET)

    client.post(
        "/v1/resolutions",
        json={"type": "NO_AFFECTIVE_ABOVE_AMOUNT", "month_key": key, "max_affective_amount": 100},
    )
    (status,) = client.get(f"/v1/resolutions/status?month_key={key}").json()
    assert status["is_met"] is False, "Impulse buy above 100 should break the goal"

    client.delete(f"/v1/expenses/{gadget['entry_id']}")
    (status,) = client.get(f"/v1/resolutions/status?month_key={key}").json()
    assert status["is_met"] is True

    summary = client.get("/v1/expenses/summary/current-month").json()
    assert summary["total_spent"] == pytest.approx(62.4)
    assert summary["count_unrated"] == 0


@pytest.mark.integration
def test_user_subscriber_returns_after_months(db: Session):
    """
    user_subscriber: two subscriptions, no visits from February to June
    Expected: every missed charge appears once, aggregates match the ledger
    """
    user = "user_subscriber"
    streaming, _ = expenses.create_expense(
        db, user, 12.99, "Streaming", is_recurring=True, interval_type="MONTHS", interval_every=1,
        now=datetime(2024, 1, 31, 20, 0),
    )
    insurance, _ = expenses.create_expense(
        db, user, 240, "Insurance", is_recurring=True, interval_type="YEARS", interval_every=1,
        now=datetime(2024, 1, 31, 20, 5),
    )

    now = datetime(2024, 6, 30, 21, 0)
    key, entries = expenses.list_month(db, user, now=now)
    assert key == "2024-06"
    assert [e.purpose for e in entries] == ["Streaming"]
    assert entries[0].charged_at == datetime(2024, 6, 30, 20, 0)

    # Opening the page twice must not double-charge
    expenses.list_month(db, user, now=now)

    db.refresh(streaming)
    db.refresh(insurance)
    assert streaming.times_charged == 6
    assert float(streaming.total_paid) == pytest.approx(6 * 12.99)
    assert insurance.times_charged == 1

    february = expenses.list_month(db, user, "2024-02", now=now)[1]
    assert [e.charged_at for e in february] == [datetime(2024, 2, 29, 20, 0)]


@pytest.mark.integration
def test_user_impulsive_weekly_limit(db: Session):
    """
    user_impulsive: at most 2 impulse buys per week in March
    Expected: missed while March is open, closed months always report met
    """
    user = "user_impulsive"
    impulse = RatingInput(q1_happy=4, q2_value=3, q3_repeat_now=False, q4_need_elsewhere=False, q5_planned=Planning.AFFEKTIV)

    for day in (4, 5, 6, 12):
        now = datetime(2024, 3, day, 18, 0)
        _, instance = expenses.create_expense(db, user, 15, f"Impulse {day}", now=now)
        expenses.rate_entry(db, user, instance.id, impulse, now=now)

    resolutions.create_resolution(
        db, user, "MAX_AFFECTIVE_PER_PERIOD", "2024-03", {"max_affective_count": 2, "max_affective_period": "WEEK"}
    )

    (open_status,) = resolutions.resolution_statuses(db, user, "2024-03", now=datetime(2024, 3, 20))
    assert open_status.is_met is False
    assert open_status.description == "3 / 2"

    (closed_status,) = resolutions.resolution_statuses(db, user, "2024-03", now=datetime(2024, 4, 1))
    assert closed_status.is_met is True

    _, week_entries, stats = period_statistics(db, user, "week", "2024-W10", now=datetime(2024, 3, 20))
    assert len(week_entries) == 3
    assert stats.total_spent == pytest.approx(45.0)
    assert stats.has_comparison is False
