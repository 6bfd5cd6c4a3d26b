"""Credit-card payment classifier tests."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from budgetpilot.services.classifier import (
    KeywordPaymentClassifier,
    is_credit_card_inflow,
    is_credit_card_payment,
)


def _txn(amount: float, description: str = "", category: str = ""):
    return SimpleNamespace(amount=amount, description=description, category=category)


CHECKING = SimpleNamespace(account_type="checking")
DEPOSITORY = SimpleNamespace(account_type="Depository")
CREDIT = SimpleNamespace(account_type="credit")
SAVINGS = SimpleNamespace(account_type="savings")


@pytest.mark.parametrize(
    "description,category",
    [
        ("ACH transfer", "Credit Card Payments"),
        ("Autopay", "payment"),
        ("CREDIT CARD AUTOPAY", ""),
        ("Payment To: Visa Rewards", ""),
        ("payment: online", ""),
    ],
)
def test_keyword_matches_qualify(description, category):
    assert is_credit_card_payment(_txn(-150.0, description, category), CHECKING)


def test_known_debt_name_in_description_qualifies():
    txn = _txn(-75.0, "Online transfer to store card #1234")
    assert not is_credit_card_payment(txn, CHECKING)
    assert is_credit_card_payment(txn, CHECKING, ["Store Card"])


def test_depository_accounts_count_as_payment_sources():
    assert is_credit_card_payment(_txn(-20.0, "Credit card payment"), DEPOSITORY)


def test_credit_and_savings_sources_never_qualify():
    txn = _txn(-100.0, "Credit card payment", "Credit Card Payments")
    assert not is_credit_card_payment(txn, CREDIT)
    assert not is_credit_card_payment(txn, SAVINGS)


@pytest.mark.parametrize("amount", [0.0, 100.0])
def test_zero_and_inflows_never_qualify(amount):
    assert not is_credit_card_payment(_txn(amount, "Credit card payment"), CHECKING)


def test_unrelated_outflow_does_not_qualify():
    txn = _txn(-42.1, "Fresh Market groceries", "Groceries")
    assert not is_credit_card_payment(txn, CHECKING, ["Visa Rewards"])


def test_classifier_is_deterministic():
    txn = _txn(-300.0, "Payment to: Visa", "Transfer")
    results = {is_credit_card_payment(txn, CHECKING, ["Visa"]) for _ in range(5)}
    assert results == {True}


def test_keyword_classifier_delegates_to_predicate():
    classifier = KeywordPaymentClassifier()
    assert classifier.is_credit_card_payment(_txn(-10.0, "credit card"), CHECKING)
    assert not classifier.is_credit_card_payment(_txn(-10.0, "coffee"), CHECKING)


def test_inflow_detection_requires_credit_account_and_positive_amount():
    assert is_credit_card_inflow(_txn(250.0), CREDIT)
    assert not is_credit_card_inflow(_txn(-250.0), CREDIT)
    assert not is_credit_card_inflow(_txn(250.0), CHECKING)
