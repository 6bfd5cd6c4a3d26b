"""Debt plan request validation helpers."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ...errors import ValidationError
from ...services.debts import STRATEGIES, Debt


def _parse_float(errors: Dict[str, List[str]], key: str, value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        errors.setdefault(key, []).append("Enter a valid number.")
        return None
    if not math.isfinite(parsed):
        errors.setdefault(key, []).append("Enter a finite number.")
        return None
    return parsed


def _parse_date(errors: Dict[str, List[str]], key: str, value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        text = str(value)
        if len(text) == 10:
            return datetime.strptime(text, "%Y-%m-%d").date()
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        errors.setdefault(key, []).append("Enter a valid date (YYYY-MM-DD).")
        return None


@dataclass(slots=True)
class DebtListForm:
    """Optional ``debts`` array shared by the planning endpoints.

    ``debts`` stays ``None`` when the caller omitted it so the route can
    fall back to the user's credit accounts.
    """

    debts: Optional[List[Debt]] = None
    extra_payment: Optional[float] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    def load(self, data: Mapping[str, Any]) -> None:
        self.errors.clear()
        raw_debts = data.get("debts")
        self.debts = None
        if raw_debts is not None:
            if not isinstance(raw_debts, list):
                self.errors.setdefault("debts", []).append("Debts must be a list.")
            else:
                self.debts = []
                for raw in raw_debts:
                    if not isinstance(raw, Mapping):
                        self.errors.setdefault("debts", []).append("Each debt must be an object.")
                        continue
                    try:
                        self.debts.append(Debt.from_mapping(raw))
                    except ValidationError as exc:
                        self.errors.setdefault("debts", []).append(exc.message)

        self.extra_payment = _parse_float(self.errors, "extraPayment", data.get("extraPayment"))
        if self.extra_payment is not None and self.extra_payment < 0:
            self.errors.setdefault("extraPayment", []).append("Extra payment cannot be negative.")

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)


@dataclass(slots=True)
class GeneratePlanForm(DebtListForm):
    strategy: str = ""
    tracking_mode: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GeneratePlanForm:
        form = cls()
        form.load(data)
        form.strategy = str(data.get("strategy") or "").strip().lower()
        mode = data.get("trackingMode")
        form.tracking_mode = str(mode).strip().lower() if mode else None
        if form.strategy not in STRATEGIES:
            form.errors.setdefault("strategy", []).append(
                'Strategy must be either "snowball" or "avalanche".'
            )
        return form


@dataclass(slots=True)
class TargetPaymentForm(DebtListForm):
    target_months: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TargetPaymentForm:
        form = cls()
        form.load(data)
        raw = data.get("targetMonths")
        try:
            form.target_months = int(raw)
        except (TypeError, ValueError):
            form.errors.setdefault("targetMonths", []).append("Enter a whole number of months.")
        else:
            if form.target_months < 1:
                form.errors.setdefault("targetMonths", []).append("Must be at least 1 month.")
        return form


@dataclass(slots=True)
class PaymentForm:
    """Manual payment against a plan."""

    plan_id: Optional[int] = None
    amount: Optional[float] = None
    paid_on: Optional[date] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PaymentForm:
        form = cls()
        try:
            form.plan_id = int(data.get("planId"))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            form.errors.setdefault("planId", []).append("Plan id is required.")

        form.amount = _parse_float(form.errors, "amount", data.get("amount"))
        if form.amount is None and "amount" not in form.errors:
            form.errors.setdefault("amount", []).append("Amount is required.")
        elif form.amount is not None and form.amount <= 0:
            form.errors.setdefault("amount", []).append("Payment amount must be positive.")

        form.paid_on = _parse_date(form.errors, "date", data.get("date"))
        return form

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)


@dataclass(slots=True)
class UpdatePlanForm:
    title: Optional[str] = None
    description: Optional[str] = None
    steps: Optional[List[str]] = None
    status: Optional[str] = None
    errors: Dict[str, List[str]] = field(default_factory=dict, init=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> UpdatePlanForm:
        form = cls()
        if data.get("title") is not None:
            form.title = str(data["title"])
        if data.get("description") is not None:
            form.description = str(data["description"])
        if data.get("status") is not None:
            form.status = str(data["status"]).strip().lower()
        steps = data.get("steps")
        if steps is not None:
            if isinstance(steps, list):
                form.steps = [str(step) for step in steps]
            else:
                form.errors.setdefault("steps", []).append("Steps must be a list.")
        return form

    def raise_for_errors(self) -> None:
        if self.errors:
            first = next(iter(self.errors.values()))[0]
            raise ValidationError(first, fields=self.errors)
