"""Debt plan lifecycle: create, read, update, delete and record payments."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from ..errors import NotFoundError, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.account import SQLModelAccountRepository
from ..infra.repositories.debt_plan import SQLModelDebtPlanRepository
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.debt_plan import PLAN_STATUSES, TRACKING_MODES, DebtPlan, PaymentRecord
from .classifier import KeywordPaymentClassifier, PaymentClassifier
from .debts import PayoffPlan
from .progress import RECENT_MONTHS, MonthlyPaymentBucket, compute_progress, detect_payments

logger = get_logger(__name__)

MAX_MANUAL_PAYMENT = 50_000.0
RECENT_PAYMENTS = 6


def _iso(value: date | datetime | None) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _serialize_payment(payment: PaymentRecord) -> dict[str, Any]:
    return {
        "id": payment.id,
        "amount": payment.amount,
        "date": payment.paid_on.isoformat(),
        "month": payment.month,
        "targetDebt": payment.target_debt,
    }


def _serialize_bucket(bucket: MonthlyPaymentBucket) -> dict[str, Any]:
    data = bucket.to_dict()
    data["id"] = None
    data["targetDebt"] = "detected"
    return data


def serialize_plan(
    plan: DebtPlan, payments: Iterable[dict[str, Any]], progress: float
) -> dict[str, Any]:
    """camelCase view of a plan with its payments."""

    return {
        "id": plan.id,
        "title": plan.title,
        "description": plan.description,
        "strategy": plan.strategy,
        "steps": list(plan.steps or []),
        "totalDebt": plan.total_debt,
        "monthlyPayment": plan.monthly_payment,
        "estimatedMonths": plan.estimated_months,
        "totalInterest": plan.total_interest,
        "interestSaved": plan.interest_saved,
        "payoffDate": _iso(plan.payoff_date),
        "payoffOrder": list(plan.payoff_order or []),
        "debts": list(plan.debts or []),
        "progress": progress,
        "status": plan.status,
        "trackingMode": plan.tracking_mode,
        "createdAt": _iso(plan.created_at),
        "updatedAt": _iso(plan.updated_at),
        "payments": list(payments),
    }


class PlanService:
    """Owns the single-active-plan rule and both progress variants."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        classifier: PaymentClassifier | None = None,
        default_tracking_mode: str = "automatic",
    ):
        self.plans = SQLModelDebtPlanRepository(session_factory)
        self.accounts = SQLModelAccountRepository(session_factory)
        self.transactions = SQLModelTransactionRepository(session_factory)
        self.classifier = classifier or KeywordPaymentClassifier()
        self.default_tracking_mode = default_tracking_mode

    def get_active_plan(self, user_id: int) -> Optional[dict[str, Any]]:
        plan = self.plans.get_active(user_id=user_id)
        if plan is None:
            return None
        return self._present(plan)

    def create_plan(
        self, user_id: int, payoff: PayoffPlan, tracking_mode: Optional[str] = None
    ) -> dict[str, Any]:
        """Store ``payoff`` as the user's active plan, pausing any previous one."""

        mode = (tracking_mode or self.default_tracking_mode).lower()
        if mode not in TRACKING_MODES:
            raise ValidationError(
                f"Tracking mode must be one of {', '.join(TRACKING_MODES)}",
                fields={"trackingMode": ["Unsupported value."]},
            )

        row = DebtPlan(
            user_id=user_id,
            title=payoff.title,
            description=payoff.description,
            strategy=payoff.strategy,
            steps=list(payoff.steps),
            total_debt=payoff.total_debt,
            monthly_payment=payoff.monthly_payment,
            estimated_months=payoff.estimated_months,
            total_interest=payoff.total_interest,
            interest_saved=payoff.interest_saved,
            payoff_date=payoff.payoff_date,
            payoff_order=list(payoff.payoff_order),
            debts=[debt.to_dict() for debt in payoff.debts],
            progress=0.0,
            status="active",
            tracking_mode=mode,
        )
        stored = self.plans.replace_active(row, user_id=user_id)
        logger.info(
            "Created debt plan",
            extra={
                "user_id": user_id,
                "plan_id": stored.id,
                "strategy": stored.strategy,
                "tracking_mode": mode,
            },
        )
        return self._present(stored)

    def delete_plan(self, user_id: int, plan_id: int) -> None:
        if not self.plans.delete(plan_id, user_id=user_id):
            raise NotFoundError("Debt plan not found")
        logger.info("Deleted debt plan", extra={"user_id": user_id, "plan_id": plan_id})

    def record_payment(
        self, user_id: int, plan_id: int, amount: float, paid_on: Optional[date] = None
    ) -> dict[str, Any]:
        """Append a hand-entered payment to a manual plan and refresh its progress."""

        plan = self._owned(user_id, plan_id)
        if plan.tracking_mode != "manual":
            raise ValidationError("Payments are detected automatically for this plan")
        if amount is None or amount <= 0:
            raise ValidationError(
                "Payment amount must be positive", fields={"amount": ["Must be positive."]}
            )
        if amount > MAX_MANUAL_PAYMENT:
            raise ValidationError(
                f"Payment amount cannot exceed ${MAX_MANUAL_PAYMENT:,.0f}",
                fields={"amount": ["Too large."]},
            )

        paid_on = paid_on or datetime.now(timezone.utc).date()
        payment = PaymentRecord(
            plan_id=plan.id,  # type: ignore[arg-type]
            amount=round(amount, 2),
            target_debt=self._first_debt_name(plan),
            paid_on=paid_on,
            month=paid_on.strftime("%b %Y"),
        )
        history = [p.amount for p in self.plans.list_payments(plan.id)]  # type: ignore[arg-type]
        progress = compute_progress(plan, plan.debts, [*history, payment.amount])
        updated = self.plans.add_payment(plan, payment, progress=progress)
        logger.info(
            "Recorded manual debt payment",
            extra={"user_id": user_id, "plan_id": plan_id, "amount": payment.amount},
        )
        return self._present(updated)

    def update_plan(
        self,
        user_id: int,
        plan_id: int,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        steps: Optional[Sequence[str]] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        plan = self._owned(user_id, plan_id)
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be blank", fields={"title": ["Required."]})
            plan.title = title.strip()
        if description is not None:
            plan.description = description
        if steps is not None:
            plan.steps = [str(step) for step in steps]
        if status is not None:
            if status not in PLAN_STATUSES:
                raise ValidationError(
                    f"Status must be one of {', '.join(PLAN_STATUSES)}",
                    fields={"status": ["Unsupported value."]},
                )
            plan.status = status
        updated = self.plans.update(plan, user_id=user_id)
        return self._present(updated)

    def _owned(self, user_id: int, plan_id: int) -> DebtPlan:
        plan = self.plans.get_by_id(plan_id, user_id=user_id)
        if plan is None:
            raise NotFoundError("Debt plan not found")
        return plan

    @staticmethod
    def _first_debt_name(plan: DebtPlan) -> str:
        if plan.payoff_order:
            first = plan.payoff_order[0]
            for debt in plan.debts or []:
                if str(debt.get("id")) == str(first):
                    return str(debt.get("accountName") or first)
            return str(first)
        return "primary"

    def _present(self, plan: DebtPlan) -> dict[str, Any]:
        if plan.tracking_mode == "automatic":
            accounts = self.accounts.list_all(user_id=plan.user_id)
            transactions = self.transactions.list_since(plan.created_at, user_id=plan.user_id)
            buckets = detect_payments(plan, transactions, accounts, self.classifier, limit=None)
            progress = compute_progress(plan, plan.debts, buckets)
            payments = [_serialize_bucket(bucket) for bucket in buckets[:RECENT_MONTHS]]
            return serialize_plan(plan, payments, progress)

        records = self.plans.list_payments(plan.id)[:RECENT_PAYMENTS]  # type: ignore[arg-type]
        return serialize_plan(plan, [_serialize_payment(p) for p in records], plan.progress)
