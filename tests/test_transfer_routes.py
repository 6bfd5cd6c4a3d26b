"""Transaction and budget transfer blueprint tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from budgetpilot.models import Budget, Transaction
from budgetpilot.services.transfers import CreditCardTransferEngine


@pytest.fixture
def accounts(app_account_factory):
    checking = app_account_factory("Everyday Checking", "checking", balance=2000.0)
    visa = app_account_factory("Visa Rewards", "credit", balance=-900.0, interest_rate=0.2)
    return {"checking": checking, "visa": visa}


def test_credit_card_payment_created(client, accounts):
    response = client.post(
        "/api/transactions/credit-card-payment",
        json={
            "fromAccountId": accounts["checking"].id,
            "toAccountId": accounts["visa"].id,
            "amount": 250,
            "date": "2024-06-01",
        },
    )
    assert response.status_code == 201
    payload = response.get_json()
    assert payload["checkingTransaction"]["amount"] == -250.0
    assert payload["creditCardTransaction"]["amount"] == 250.0
    assert payload["transfer"]["automated"] is True
    assert payload["transfer"]["transactionId"] == payload["checkingTransaction"]["id"]


def test_credit_card_payment_without_card_is_conflict(client, app_account_factory):
    checking = app_account_factory("Lonely Checking", "checking", balance=100.0)
    response = client.post(
        "/api/transactions/credit-card-payment",
        json={"fromAccountId": checking.id, "amount": 50},
    )
    assert response.status_code == 409
    assert response.get_json()["error"] == "no_credit_card_account"


@pytest.mark.parametrize(
    "body",
    [
        {"amount": 50},
        {"fromAccountId": 1, "amount": 0},
        {"fromAccountId": 1, "amount": float("nan")},
        {},
    ],
)
def test_credit_card_payment_validation(client, body):
    response = client.post("/api/transactions/credit-card-payment", json=body)
    assert response.status_code == 400
    assert response.get_json()["error"] == "validation_error"


def test_storage_failure_returns_generic_500(client, accounts, monkeypatch):
    def explode(self, session, transaction):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(CreditCardTransferEngine, "_post_leg", explode)
    response = client.post(
        "/api/transactions/credit-card-payment",
        json={"fromAccountId": accounts["checking"].id, "amount": 25},
    )
    assert response.status_code == 500
    payload = response.get_json()
    assert payload["error"] == "storage_error"
    assert "locked" not in payload["message"]
    assert client.get("/api/budget/transfers").get_json()["transfers"] == []


def test_transaction_route_automates_card_payments(client, accounts):
    response = client.post(
        "/api/transactions",
        json={
            "accountId": accounts["checking"].id,
            "amount": -120,
            "description": "Payment To: Visa Rewards",
            "date": "2024-06-03",
        },
    )
    assert response.status_code == 201
    payload = response.get_json()
    assert payload["automated"] is True
    assert payload["creditCardTransaction"]["accountId"] == accounts["visa"].id


def test_transaction_route_stores_plain_spending(client, accounts):
    response = client.post(
        "/api/transactions",
        json={"accountId": accounts["checking"].id, "amount": -9.5, "description": "Coffee"},
    )
    assert response.status_code == 201
    assert response.get_json()["automated"] is False


def test_list_transfers_with_filter(client, accounts):
    created = []
    for amount in (10, 20):
        response = client.post(
            "/api/transactions/credit-card-payment",
            json={"fromAccountId": accounts["checking"].id, "amount": amount},
        )
        created.append(response.get_json())

    transfers = client.get("/api/budget/transfers").get_json()["transfers"]
    assert [t["amount"] for t in transfers] == [20.0, 10.0]

    first_txn = created[0]["checkingTransaction"]["id"]
    filtered = client.get(f"/api/budget/transfers?transactionId={first_txn}").get_json()
    assert [t["amount"] for t in filtered["transfers"]] == [10.0]


def test_list_transfers_rejects_bad_filter(client):
    response = client.get("/api/budget/transfers?transactionId=abc")
    assert response.status_code == 400


@pytest.fixture
def app_budget_factory(app_session_factory, app_user):
    def _create_budget(name: str, amount: float, spent: float = 0.0) -> Budget:
        with app_session_factory() as session:
            budget = Budget(
                user_id=app_user.id, name=name, category="Everyday",
                amount=amount, spent=spent, month=6, year=2024,
            )
            session.add(budget)
            session.flush()
            session.refresh(budget)
            return budget

    return _create_budget


def test_budget_assignment_automation(
    client, accounts, app_budget_factory, app_session_factory, app_user
):
    groceries = app_budget_factory("Groceries", 300.0)
    with app_session_factory() as session:
        session.add(
            Transaction(
                user_id=app_user.id, account_id=accounts["visa"].id, amount=-75.0,
                description="Whole Foods", category="Groceries",
                occurred_at=datetime(2024, 6, 2, tzinfo=timezone.utc),
            )
        )

    response = client.post(
        "/api/budget/credit-card-automation",
        json={"budgetId": groceries.id, "assignedAmount": 100},
    )
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["transferAmount"] == 75.0
    assert payload["creditCardTransfers"] == [{"creditCard": "Visa Rewards", "amount": 75.0}]
    assert payload["fromBudget"]["amount"] == 225.0
    assert payload["transfers"][0]["automated"] is True


@pytest.mark.parametrize(
    "body",
    [{}, {"budgetId": 1}, {"budgetId": 1, "assignedAmount": -10}, {"assignedAmount": 10}],
)
def test_budget_assignment_validation(client, body):
    response = client.post("/api/budget/credit-card-automation", json=body)
    assert response.status_code == 400


def test_budget_assignment_unknown_budget(client):
    response = client.post(
        "/api/budget/credit-card-automation", json={"budgetId": 4242, "assignedAmount": 10}
    )
    assert response.status_code == 404


def test_cover_overspending_route(client, app_budget_factory):
    buffer = app_budget_factory("Buffer", 400.0)
    dining = app_budget_factory("Dining", 100.0, spent=150.0)

    response = client.post(
        "/api/budget/transfer",
        json={"fromBudgetId": buffer.id, "overspentBudgets": [{"id": dining.id}], "amount": 50},
    )
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["sourceBudget"]["amount"] == 350.0
    assert payload["updatedBudgets"][0]["available"] == 0.0
    assert payload["transfers"][0]["toBudgetId"] == dining.id

    listed = client.get("/api/budget/transfers").get_json()["transfers"]
    assert [t["amount"] for t in listed] == [50.0]


def test_cover_overspending_insufficient_funds(client, app_budget_factory):
    buffer = app_budget_factory("Buffer", 20.0)
    dining = app_budget_factory("Dining", 100.0, spent=150.0)
    response = client.post(
        "/api/budget/transfer",
        json={"fromBudgetId": buffer.id, "overspentBudgets": [dining.id], "amount": 50},
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "Insufficient funds in source budget"
