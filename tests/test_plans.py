"""Plan lifecycle service tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlmodel import select

from budgetpilot.errors import NotFoundError, StorageError, ValidationError
from budgetpilot.models import DebtPlan, PaymentRecord
from budgetpilot.services.debts import Debt, generate_plan
from budgetpilot.services.plans import PlanService


@pytest.fixture
def payoff():
    debts = [
        Debt(id="1", account_name="Visa Rewards", balance=1200.0, interest_rate=0.199, minimum_payment=40.0),
        Debt(id="2", account_name="Store Card", balance=800.0, interest_rate=0.249, minimum_payment=25.0),
    ]
    return generate_plan(debts, "snowball", 200.0, start=date(2024, 1, 1))


def test_create_then_fetch_round_trip(session_factory, user, payoff):
    service = PlanService(session_factory)
    created = service.create_plan(user.id, payoff, "manual")

    fetched = service.get_active_plan(user.id)
    assert fetched is not None
    for key in ("id", "title", "strategy", "steps", "totalDebt", "monthlyPayment", "estimatedMonths"):
        assert fetched[key] == created[key]
    assert fetched["steps"] == payoff.steps
    assert fetched["totalDebt"] == 2000.0
    assert fetched["status"] == "active"
    assert fetched["trackingMode"] == "manual"
    assert fetched["payoffOrder"] == payoff.payoff_order
    assert fetched["payments"] == []
    assert fetched["progress"] == 0.0


def test_no_active_plan_returns_none(session_factory, user):
    assert PlanService(session_factory).get_active_plan(user.id) is None


def test_new_plan_pauses_previous_active_plan(session_factory, user, payoff):
    service = PlanService(session_factory)
    first = service.create_plan(user.id, payoff, "manual")
    second = service.create_plan(user.id, payoff, "manual")

    assert service.get_active_plan(user.id)["id"] == second["id"]
    with session_factory() as session:
        statuses = {
            plan.id: plan.status
            for plan in session.exec(select(DebtPlan).where(DebtPlan.user_id == user.id))
        }
    assert statuses == {first["id"]: "paused", second["id"]: "active"}


def test_partial_index_rejects_second_active_row(session_factory, user):
    with pytest.raises(StorageError):
        with session_factory() as session:
            session.add(DebtPlan(user_id=user.id, title="One", status="active"))
            session.add(DebtPlan(user_id=user.id, title="Two", status="active"))


def test_invalid_tracking_mode_rejected(session_factory, user, payoff):
    with pytest.raises(ValidationError):
        PlanService(session_factory).create_plan(user.id, payoff, "sometimes")


def test_default_tracking_mode_comes_from_service(session_factory, user, payoff):
    service = PlanService(session_factory, default_tracking_mode="manual")
    assert service.create_plan(user.id, payoff)["trackingMode"] == "manual"


def test_record_payment_updates_progress(session_factory, user, payoff):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "manual")

    updated = service.record_payment(user.id, plan["id"], 500.0, date(2024, 2, 3))
    assert updated["progress"] == pytest.approx(25.0)
    assert updated["payments"][0]["month"] == "Feb 2024"
    assert updated["payments"][0]["amount"] == 500.0
    assert updated["payments"][0]["targetDebt"] == "Store Card"

    updated = service.record_payment(user.id, plan["id"], 5000.0, date(2024, 3, 3))
    assert updated["progress"] == 100.0
    assert len(updated["payments"]) == 2


def test_manual_payments_list_newest_six(session_factory, user, payoff):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "manual")

    for month in range(1, 8):
        updated = service.record_payment(user.id, plan["id"], 10.0 * month, date(2024, month, 5))

    assert [p["amount"] for p in updated["payments"]] == [70.0, 60.0, 50.0, 40.0, 30.0, 20.0]
    # progress still counts every recorded payment
    assert updated["progress"] == pytest.approx(14.0)


@pytest.mark.parametrize("amount", [0.0, -10.0, 50_000.01])
def test_record_payment_rejects_bad_amounts(session_factory, user, payoff, amount):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "manual")
    with pytest.raises(ValidationError):
        service.record_payment(user.id, plan["id"], amount)


def test_record_payment_rejected_for_automatic_plans(session_factory, user, payoff):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "automatic")
    with pytest.raises(ValidationError):
        service.record_payment(user.id, plan["id"], 100.0)


def test_automatic_plan_derives_payments_from_transactions(
    session_factory, user, payoff, debt_accounts, transaction_factory
):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "automatic")
    later = datetime.now(timezone.utc) + timedelta(minutes=5)

    transaction_factory(debt_accounts["checking"], -300.0, "Payment To: Visa Rewards", occurred_at=later)
    transaction_factory(debt_accounts["checking"], -50.0, "Coffee", "Dining", occurred_at=later)

    fetched = service.get_active_plan(user.id)
    assert fetched["id"] == plan["id"]
    assert fetched["progress"] == pytest.approx(15.0)
    assert len(fetched["payments"]) == 1
    assert fetched["payments"][0]["amount"] == 300.0


def test_delete_removes_plan_and_payments(session_factory, user, payoff, row_counter):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "manual")
    service.record_payment(user.id, plan["id"], 100.0)

    service.delete_plan(user.id, plan["id"])

    assert service.get_active_plan(user.id) is None
    assert row_counter(PaymentRecord) == 0
    assert row_counter(DebtPlan) == 0


def test_missing_or_foreign_plans_raise_not_found(session_factory, user, other_user, payoff):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "manual")

    with pytest.raises(NotFoundError):
        service.delete_plan(user.id, 9999)
    with pytest.raises(NotFoundError):
        service.delete_plan(other_user.id, plan["id"])
    with pytest.raises(NotFoundError):
        service.record_payment(other_user.id, plan["id"], 10.0)
    with pytest.raises(NotFoundError):
        service.update_plan(other_user.id, plan["id"], title="Mine now")


def test_update_plan_edits_fields(session_factory, user, payoff):
    service = PlanService(session_factory)
    plan = service.create_plan(user.id, payoff, "manual")

    updated = service.update_plan(
        user.id, plan["id"], title="Kill the cards", steps=["Cut up cards"], status="paused"
    )
    assert updated["title"] == "Kill the cards"
    assert updated["steps"] == ["Cut up cards"]
    assert updated["status"] == "paused"
    assert service.get_active_plan(user.id) is None

    with pytest.raises(ValidationError):
        service.update_plan(user.id, plan["id"], status="archived")


def test_reactivating_plan_pauses_current_one(session_factory, user, payoff):
    service = PlanService(session_factory)
    first = service.create_plan(user.id, payoff, "manual")
    second = service.create_plan(user.id, payoff, "manual")

    service.update_plan(user.id, first["id"], status="active")

    assert service.get_active_plan(user.id)["id"] == first["id"]
    with session_factory() as session:
        assert session.get(DebtPlan, second["id"]).status == "paused"
