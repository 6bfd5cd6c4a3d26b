"""Debt plan repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.debt_plan import DebtPlan, PaymentRecord


class DebtPlanRepository(Protocol):
    """Repository for debt plans and their payment records."""

    def get_active(self, *, user_id: int) -> Optional[DebtPlan]:
        """Return the user's active plan, if any."""
        ...

    def get_by_id(self, plan_id: int, *, user_id: int) -> Optional[DebtPlan]:
        """Retrieve a plan owned by ``user_id``."""
        ...

    def replace_active(self, plan: DebtPlan, *, user_id: int) -> DebtPlan:
        """Pause the current active plan and insert ``plan`` as active."""
        ...

    def update(self, plan: DebtPlan, *, user_id: int) -> DebtPlan:
        """Persist changes to an existing plan."""
        ...

    def delete(self, plan_id: int, *, user_id: int) -> bool:
        """Delete a plan and its payments; False when nothing matched."""
        ...

    def list_payments(self, plan_id: int) -> list[PaymentRecord]:
        """Payments recorded against a plan, most recently recorded first."""
        ...

    def add_payment(self, plan: DebtPlan, payment: PaymentRecord, *, progress: float) -> DebtPlan:
        """Append a payment and store the recomputed progress together."""
        ...
