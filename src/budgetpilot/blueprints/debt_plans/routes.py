"""Debt plan routes."""

from __future__ import annotations

from typing import List, Optional

from flask import current_app, jsonify

from ...config import BaseConfig
from ...extensions import get_session_factory
from ...infra.repositories.account import SQLModelAccountRepository
from ...services.debts import (
    Debt,
    compare_strategies,
    debts_from_accounts,
    generate_plan,
    payoff_milestones,
    target_extra_payment,
)
from ...services.plans import PlanService
from .. import current_user_id, request_payload
from . import bp
from .forms import DebtListForm, GeneratePlanForm, PaymentForm, TargetPaymentForm, UpdatePlanForm


def _config() -> BaseConfig:
    return current_app.config["BUDGETPILOT_CONFIG"]


def _plan_service() -> PlanService:
    return PlanService(
        get_session_factory(), default_tracking_mode=_config().TRACKING_MODE
    )


def _resolve_debts(form: DebtListForm, user_id: int) -> List[Debt]:
    """Debts from the request, or the user's credit accounts when omitted."""

    if form.debts is not None:
        return form.debts
    accounts = SQLModelAccountRepository(get_session_factory()).list_credit(user_id=user_id)
    return debts_from_accounts(accounts)


def _extra(form: DebtListForm) -> float:
    extra: Optional[float] = form.extra_payment
    return _config().DEFAULT_EXTRA_PAYMENT if extra is None else extra


@bp.get("")
def get_active_plan():
    user_id = current_user_id()
    return jsonify({"activePlan": _plan_service().get_active_plan(user_id)})


@bp.post("/generate")
def generate():
    user_id = current_user_id()
    form = GeneratePlanForm.from_mapping(request_payload())
    form.raise_for_errors()

    payoff = generate_plan(
        _resolve_debts(form, user_id),
        form.strategy,
        _extra(form),
        max_months=_config().MAX_PLAN_MONTHS,
    )
    stored = _plan_service().create_plan(user_id, payoff, form.tracking_mode)
    milestones = [milestone.to_dict() for milestone in payoff_milestones(payoff)]
    return jsonify({"plan": stored, "milestones": milestones}), 201


@bp.put("/<int:plan_id>")
def update(plan_id: int):
    user_id = current_user_id()
    form = UpdatePlanForm.from_mapping(request_payload())
    form.raise_for_errors()
    plan = _plan_service().update_plan(
        user_id,
        plan_id,
        title=form.title,
        description=form.description,
        steps=form.steps,
        status=form.status,
    )
    return jsonify({"plan": plan})


@bp.delete("/<int:plan_id>")
def delete(plan_id: int):
    user_id = current_user_id()
    _plan_service().delete_plan(user_id, plan_id)
    return "", 204


@bp.post("/payment")
def record_payment():
    user_id = current_user_id()
    form = PaymentForm.from_mapping(request_payload())
    form.raise_for_errors()
    plan = _plan_service().record_payment(
        user_id, form.plan_id, form.amount, form.paid_on  # type: ignore[arg-type]
    )
    return jsonify({"updatedPlan": plan})


@bp.get("/debts")
def list_debts():
    user_id = current_user_id()
    accounts = SQLModelAccountRepository(get_session_factory()).list_credit(user_id=user_id)
    debts = debts_from_accounts(accounts)
    return jsonify({"debts": [debt.to_dict() for debt in debts]})


@bp.post("/compare")
def compare():
    user_id = current_user_id()
    form = DebtListForm()
    form.load(request_payload())
    form.raise_for_errors()
    comparison = compare_strategies(
        _resolve_debts(form, user_id), _extra(form), max_months=_config().MAX_PLAN_MONTHS
    )
    return jsonify(comparison.to_dict())


@bp.post("/target-payment")
def target_payment():
    user_id = current_user_id()
    form = TargetPaymentForm.from_mapping(request_payload())
    form.raise_for_errors()
    debts = _resolve_debts(form, user_id)
    extra = target_extra_payment(
        debts, form.target_months, max_months=_config().MAX_PLAN_MONTHS  # type: ignore[arg-type]
    )
    return jsonify({"extraPayment": extra, "targetMonths": form.target_months})
