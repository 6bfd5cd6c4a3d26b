"""Payment detection and progress math for debt plans."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from ..models.account import Account
from ..models.debt_plan import DebtPlan
from ..models.transaction import Transaction
from .classifier import KeywordPaymentClassifier, PaymentClassifier, is_credit_card_inflow

RECENT_MONTHS = 6


@dataclass(slots=True)
class MonthlyPaymentBucket:
    """Detected debt payments for one calendar month."""

    year: int
    month: int
    total: float
    count: int

    @property
    def label(self) -> str:
        return date(self.year, self.month, 1).strftime("%b %Y")

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.label,
            "amount": round(self.total, 2),
            "count": self.count,
            "date": date(self.year, self.month, 1).isoformat(),
        }


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _debt_names(plan: DebtPlan, accounts: Iterable[Account]) -> list[str]:
    names = [str(debt.get("accountName", "")) for debt in plan.debts or []]
    names.extend(account.name for account in accounts if account.is_credit)
    return [name for name in names if name]


def detect_payments(
    plan: DebtPlan,
    transactions: Iterable[Transaction],
    accounts: Iterable[Account] | Mapping[int, Account],
    classifier: PaymentClassifier | None = None,
    limit: int | None = RECENT_MONTHS,
) -> list[MonthlyPaymentBucket]:
    """Group credit-card payment legs dated on or after the plan's creation day by month.

    Either leg of a payment counts: the checking outflow matched by the
    classifier, or the inflow posted to a credit account.
    """

    classifier = classifier or KeywordPaymentClassifier()
    if isinstance(accounts, Mapping):
        by_id = dict(accounts)
    else:
        by_id = {account.id: account for account in accounts}
    debt_names = _debt_names(plan, by_id.values())
    since = _as_utc(plan.created_at).date()

    buckets: dict[tuple[int, int], MonthlyPaymentBucket] = {}
    for txn in transactions:
        occurred = _as_utc(txn.occurred_at)
        if occurred.date() < since:
            continue
        account = by_id.get(txn.account_id)
        if account is None:
            continue
        if not (
            classifier.is_credit_card_payment(txn, account, debt_names)
            or is_credit_card_inflow(txn, account)
        ):
            continue
        key = (occurred.year, occurred.month)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = MonthlyPaymentBucket(occurred.year, occurred.month, 0.0, 0)
        bucket.total = round(bucket.total + abs(txn.amount), 2)
        bucket.count += 1

    ordered = sorted(buckets.values(), key=lambda b: (b.year, b.month), reverse=True)
    if limit is not None:
        return ordered[:limit]
    return ordered


def compute_progress(
    plan: DebtPlan,
    debts: Sequence[Mapping[str, Any]] | None,
    detected_payments: Iterable[MonthlyPaymentBucket | float],
) -> float:
    """Return percent of the plan's debt paid off, clamped to [0, 100]."""

    paid = 0.0
    for payment in detected_payments:
        paid += payment.total if isinstance(payment, MonthlyPaymentBucket) else float(payment)

    denominator = plan.total_debt or 0.0
    if denominator <= 0:
        denominator = sum(float(debt.get("balance") or 0.0) for debt in debts or [])
    if denominator <= 0:
        return 0.0

    percent = paid / denominator * 100
    return round(min(100.0, max(0.0, percent)), 2)
