"""Transaction and credit-card payment request validation."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...errors import ValidationError
from ...services.transfers import TransactionDraft


def _optional_int(errors: Dict[str, List[str]], key: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        errors.setdefault(key, []).append("Must be a whole number.")
        return None
    if parsed <= 0:
        errors.setdefault(key, []).append("Must be greater than zero.")
        return None
    return parsed


def _parse_amount(errors: Dict[str, List[str]], key: str, value: Any) -> Optional[float]:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        errors.setdefault(key, []).append("Amount is required.")
        return None
    if not math.isfinite(parsed):
        errors.setdefault(key, []).append("Enter a finite number.")
        return None
    return parsed


def _parse_datetime(errors: Dict[str, List[str]], value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    text = str(value).strip()
    try:
        if len(text) == 10:
            parsed = datetime.strptime(text, "%Y-%m-%d")
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        errors.setdefault("date", []).append("Enter a valid date (YYYY-MM-DD).")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True)
class CreditCardPaymentForm:
    """Explicit payment from a checking account to a card."""

    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    amount: Optional[float] = None
    occurred_at: Optional[datetime] = None
    description: str = ""
    from_budget_id: Optional[int] = None
    to_budget_id: Optional[int] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CreditCardPaymentForm:
        form = cls()
        form.from_account_id = _optional_int(
            form.errors, "fromAccountId", data.get("fromAccountId")
        )
        if form.from_account_id is None and "fromAccountId" not in form.errors:
            form.errors.setdefault("fromAccountId", []).append("Checking account is required.")
        form.to_account_id = _optional_int(form.errors, "toAccountId", data.get("toAccountId"))
        form.from_budget_id = _optional_int(form.errors, "budgetId", data.get("budgetId"))
        form.to_budget_id = _optional_int(form.errors, "toBudgetId", data.get("toBudgetId"))

        form.amount = _parse_amount(form.errors, "amount", data.get("amount"))
        if form.amount is not None and form.amount <= 0:
            form.errors.setdefault("amount", []).append("Payment amount must be positive.")

        form.occurred_at = _parse_datetime(form.errors, data.get("date"))
        form.description = str(data.get("description") or "").strip()
        return form

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)

    def legs(self) -> tuple[TransactionDraft, TransactionDraft]:
        """Return (checking_leg, credit_card_leg) drafts."""

        amount = abs(self.amount or 0.0)
        checking_leg = TransactionDraft(
            account_id=self.from_account_id,
            amount=-amount,
            description=self.description,
            occurred_at=self.occurred_at,
            budget_id=self.from_budget_id,
        )
        credit_card_leg = TransactionDraft(
            account_id=self.to_account_id,
            amount=amount,
            occurred_at=self.occurred_at,
            budget_id=self.to_budget_id,
        )
        return checking_leg, credit_card_leg


@dataclass(slots=True)
class TransactionForm:
    account_id: Optional[int] = None
    amount: Optional[float] = None
    description: str = ""
    category: str = ""
    occurred_at: Optional[datetime] = None
    budget_id: Optional[int] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TransactionForm:
        form = cls()
        form.account_id = _optional_int(form.errors, "accountId", data.get("accountId"))
        if form.account_id is None and "accountId" not in form.errors:
            form.errors.setdefault("accountId", []).append("Account is required.")
        form.budget_id = _optional_int(form.errors, "budgetId", data.get("budgetId"))

        form.amount = _parse_amount(form.errors, "amount", data.get("amount"))
        if form.amount == 0:
            form.errors.setdefault("amount", []).append("Amount cannot be zero.")

        form.description = str(data.get("description") or "").strip()
        if len(form.description) > 255:
            form.errors.setdefault("description", []).append(
                "Description must be 255 characters or fewer."
            )
        form.category = str(data.get("category") or "").strip()
        form.occurred_at = _parse_datetime(form.errors, data.get("date"))
        return form

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)

    def draft(self) -> TransactionDraft:
        return TransactionDraft(
            account_id=self.account_id,
            amount=self.amount or 0.0,
            description=self.description,
            category=self.category,
            occurred_at=self.occurred_at,
            budget_id=self.budget_id,
        )


@dataclass(slots=True)
class BudgetAssignmentForm:
    """Money just assigned to a spending budget."""

    budget_id: Optional[int] = None
    assigned_amount: Optional[float] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BudgetAssignmentForm:
        form = cls()
        form.budget_id = _optional_int(form.errors, "budgetId", data.get("budgetId"))
        if form.budget_id is None and "budgetId" not in form.errors:
            form.errors.setdefault("budgetId", []).append("Budget is required.")
        form.assigned_amount = _parse_amount(
            form.errors, "assignedAmount", data.get("assignedAmount")
        )
        if form.assigned_amount is not None and form.assigned_amount <= 0:
            form.errors.setdefault("assignedAmount", []).append("Must be positive.")
        return form

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)


@dataclass(slots=True)
class CoverOverspendingForm:
    """Move money from one budget onto overspent ones.

    ``overspentBudgets`` accepts ids or objects carrying an ``id``.
    """

    from_budget_id: Optional[int] = None
    overspent_budget_ids: List[int] = field(default_factory=list)
    amount: Optional[float] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CoverOverspendingForm:
        form = cls()
        form.from_budget_id = _optional_int(form.errors, "fromBudgetId", data.get("fromBudgetId"))
        if form.from_budget_id is None and "fromBudgetId" not in form.errors:
            form.errors.setdefault("fromBudgetId", []).append("Source budget is required.")

        raw_targets = data.get("overspentBudgets")
        if not isinstance(raw_targets, list) or not raw_targets:
            form.errors.setdefault("overspentBudgets", []).append(
                "Choose at least one overspent budget."
            )
        else:
            for raw in raw_targets:
                value = raw.get("id") if isinstance(raw, Mapping) else raw
                budget_id = _optional_int(form.errors, "overspentBudgets", value)
                if budget_id is not None:
                    form.overspent_budget_ids.append(budget_id)

        form.amount = _parse_amount(form.errors, "amount", data.get("amount"))
        if form.amount is not None and form.amount <= 0:
            form.errors.setdefault("amount", []).append("Transfer amount must be positive.")
        return form

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)
