"""Credit-card payment detection heuristics.

Everything here is a pure predicate over already-fetched rows. The transfer
engine and the progress tracker depend only on the boolean contract of
:class:`PaymentClassifier`, so the keyword rules can be swapped for a
merchant-id lookup without touching either of them.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from ..models.account import CREDIT_TYPES, PAYMENT_SOURCE_TYPES

CATEGORY_KEYWORDS = ("credit card", "payment")
DESCRIPTION_KEYWORDS = ("credit card",)
DESCRIPTION_PREFIXES = ("payment to:", "payment:")


class TransactionLike(Protocol):
    amount: float
    description: str
    category: str


class AccountLike(Protocol):
    account_type: str


class PaymentClassifier(Protocol):
    """Decides whether an outflow pays down a credit account."""

    def is_credit_card_payment(
        self,
        transaction: TransactionLike,
        source_account: AccountLike,
        known_debt_account_names: Iterable[str] = (),
    ) -> bool:  # pragma: no cover - interface
        ...


def _normalized(value: str | None) -> str:
    return (value or "").strip().lower()


def is_credit_card_payment(
    transaction: TransactionLike,
    source_account: AccountLike,
    known_debt_account_names: Iterable[str] = (),
) -> bool:
    """Return True when ``transaction`` is the checking-side leg of a card payment."""

    if _normalized(source_account.account_type) not in PAYMENT_SOURCE_TYPES:
        return False
    if not transaction.amount or transaction.amount >= 0:
        return False

    category = _normalized(transaction.category)
    if any(keyword in category for keyword in CATEGORY_KEYWORDS):
        return True

    description = _normalized(transaction.description)
    if any(keyword in description for keyword in DESCRIPTION_KEYWORDS):
        return True
    if description.startswith(DESCRIPTION_PREFIXES):
        return True

    for name in known_debt_account_names:
        needle = _normalized(name)
        if needle and needle in description:
            return True
    return False


def is_credit_card_inflow(transaction: TransactionLike, account: AccountLike) -> bool:
    """Return True when ``transaction`` is the card-side leg (money into a credit account)."""

    if _normalized(account.account_type) not in CREDIT_TYPES:
        return False
    return bool(transaction.amount) and transaction.amount > 0


class KeywordPaymentClassifier:
    """Default classifier backed by :func:`is_credit_card_payment`."""

    def is_credit_card_payment(
        self,
        transaction: TransactionLike,
        source_account: AccountLike,
        known_debt_account_names: Iterable[str] = (),
    ) -> bool:
        return is_credit_card_payment(transaction, source_account, known_debt_account_names)


__all__ = [
    "KeywordPaymentClassifier",
    "PaymentClassifier",
    "is_credit_card_inflow",
    "is_credit_card_payment",
]
