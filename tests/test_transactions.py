"""Transaction creation with credit-card automation."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from budgetpilot.errors import NotFoundError, ValidationError
from budgetpilot.models import BudgetTransfer, Transaction
from budgetpilot.services.transactions import TransactionService
from budgetpilot.services.transfers import TransactionDraft

WHEN = datetime(2024, 5, 2, tzinfo=timezone.utc)


def test_card_payment_is_split_into_two_legs(session_factory, user, debt_accounts, row_counter):
    service = TransactionService(session_factory)
    draft = TransactionDraft(
        account_id=debt_accounts["checking"].id,
        amount=-150.0,
        description="Payment to: Store Card",
        occurred_at=WHEN,
    )

    created = service.create_transaction(user.id, draft)

    assert created.automated
    assert created.transaction.amount == -150.0
    assert created.transfer.credit_card_transaction.account_id == debt_accounts["store"].id
    assert created.transfer.credit_card_transaction.description == "Payment From: Everyday Checking"
    assert row_counter(Transaction) == 2
    assert row_counter(BudgetTransfer) == 1
    assert created.to_dict()["automated"] is True


def test_card_payment_without_cards_falls_back_to_plain(
    session_factory, user, account_factory, row_counter
):
    checking = account_factory(name="Solo Checking")
    service = TransactionService(session_factory)

    created = service.create_transaction(
        user.id,
        TransactionDraft(account_id=checking.id, amount=-80.0, description="Credit card payment"),
    )

    assert not created.automated
    assert created.transaction.id is not None
    assert row_counter(Transaction) == 1
    assert row_counter(BudgetTransfer) == 0


def test_regular_spending_is_stored_plainly(session_factory, user, debt_accounts, row_counter):
    service = TransactionService(session_factory)
    created = service.create_transaction(
        user.id,
        TransactionDraft(
            account_id=debt_accounts["checking"].id,
            amount=-42.5,
            description="Fresh Market",
            category="Groceries",
            occurred_at=WHEN,
        ),
    )
    assert not created.automated
    assert created.transaction.category == "Groceries"
    assert row_counter(BudgetTransfer) == 0


def test_unknown_account_rejected(session_factory, user):
    service = TransactionService(session_factory)
    with pytest.raises(NotFoundError):
        service.create_transaction(user.id, TransactionDraft(account_id=404, amount=-1.0))


def test_zero_amount_rejected(session_factory, user, debt_accounts):
    service = TransactionService(session_factory)
    with pytest.raises(ValidationError):
        service.create_transaction(
            user.id, TransactionDraft(account_id=debt_accounts["checking"].id, amount=0.0)
        )
