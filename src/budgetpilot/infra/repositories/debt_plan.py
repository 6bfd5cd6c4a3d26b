"""SQLModel implementation of DebtPlan repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import select

from ...errors import NotFoundError
from ...models.debt_plan import DebtPlan, PaymentRecord
from ..database import SessionFactory


class SQLModelDebtPlanRepository:
    """SQLModel-based debt plan repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_active(self, *, user_id: int) -> Optional[DebtPlan]:
        """Return the user's active plan, if any."""
        with self.session_factory() as session:
            return session.exec(
                select(DebtPlan)
                .where(DebtPlan.user_id == user_id)
                .where(DebtPlan.status == "active")
            ).first()

    def get_by_id(self, plan_id: int, *, user_id: int) -> Optional[DebtPlan]:
        """Retrieve a plan owned by ``user_id``."""
        with self.session_factory() as session:
            return session.exec(
                select(DebtPlan).where(DebtPlan.id == plan_id, DebtPlan.user_id == user_id)
            ).first()

    def replace_active(self, plan: DebtPlan, *, user_id: int) -> DebtPlan:
        """Pause the current active plan and insert ``plan`` as active.

        Both writes share one transaction; the pause is flushed first so the
        partial unique index on active plans never sees two rows.
        """
        with self.session_factory() as session:
            current = session.exec(
                select(DebtPlan)
                .where(DebtPlan.user_id == user_id)
                .where(DebtPlan.status == "active")
            ).all()
            now = datetime.now(timezone.utc)
            for previous in current:
                previous.status = "paused"
                previous.updated_at = now
                session.add(previous)
            session.flush()

            plan.user_id = user_id
            plan.status = "active"
            session.add(plan)
            session.flush()
            session.refresh(plan)
            return plan

    def update(self, plan: DebtPlan, *, user_id: int) -> DebtPlan:
        """Persist changes to an existing plan."""
        with self.session_factory() as session:
            if plan.status == "active":
                others = session.exec(
                    select(DebtPlan)
                    .where(DebtPlan.user_id == user_id)
                    .where(DebtPlan.status == "active")
                    .where(DebtPlan.id != plan.id)
                ).all()
                for other in others:
                    other.status = "paused"
                    session.add(other)
                session.flush()
            plan.user_id = user_id
            plan.updated_at = datetime.now(timezone.utc)
            plan = session.merge(plan)
            session.flush()
            session.refresh(plan)
            return plan

    def delete(self, plan_id: int, *, user_id: int) -> bool:
        """Delete a plan and its payments; False when nothing matched."""
        with self.session_factory() as session:
            plan = session.exec(
                select(DebtPlan).where(DebtPlan.id == plan_id, DebtPlan.user_id == user_id)
            ).first()
            if plan is None:
                return False
            payments = session.exec(
                select(PaymentRecord).where(PaymentRecord.plan_id == plan_id)
            ).all()
            for payment in payments:
                session.delete(payment)
            session.flush()
            session.delete(plan)
            return True

    def list_payments(self, plan_id: int) -> list[PaymentRecord]:
        """Payments recorded against a plan, most recently recorded first."""
        with self.session_factory() as session:
            statement = (
                select(PaymentRecord)
                .where(PaymentRecord.plan_id == plan_id)
                .order_by(PaymentRecord.id.desc())  # type: ignore
            )
            return list(session.exec(statement).all())

    def add_payment(self, plan: DebtPlan, payment: PaymentRecord, *, progress: float) -> DebtPlan:
        """Append a payment and store the recomputed progress together."""
        with self.session_factory() as session:
            stored = session.get(DebtPlan, plan.id)
            if stored is None:
                raise NotFoundError("Debt plan not found")
            payment.plan_id = stored.id  # type: ignore[assignment]
            session.add(payment)
            stored.progress = progress
            stored.updated_at = datetime.now(timezone.utc)
            session.add(stored)
            session.flush()
            session.refresh(stored)
            return stored
