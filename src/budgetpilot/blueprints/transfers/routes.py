"""Credit-card payment, transaction and budget transfer routes."""

from __future__ import annotations

from flask import jsonify, request

from ...errors import ValidationError
from ...extensions import get_session_factory
from ...services.transactions import TransactionService
from ...services.transfers import CreditCardTransferEngine, serialize_transfer
from .. import current_user_id, request_payload
from . import bp
from .forms import (
    BudgetAssignmentForm,
    CoverOverspendingForm,
    CreditCardPaymentForm,
    TransactionForm,
)


@bp.post("/transactions/credit-card-payment")
def credit_card_payment():
    user_id = current_user_id()
    form = CreditCardPaymentForm.from_mapping(request_payload())
    form.raise_for_errors()

    checking_leg, credit_card_leg = form.legs()
    engine = CreditCardTransferEngine(get_session_factory())
    result = engine.record_credit_card_transfer(user_id, checking_leg, credit_card_leg)
    return jsonify(result.to_dict()), 201


@bp.post("/transactions")
def create_transaction():
    user_id = current_user_id()
    form = TransactionForm.from_mapping(request_payload())
    form.raise_for_errors()

    created = TransactionService(get_session_factory()).create_transaction(user_id, form.draft())
    return jsonify(created.to_dict()), 201


@bp.get("/budget/transfers")
def list_transfers():
    user_id = current_user_id()
    raw_id = request.args.get("transactionId")
    transaction_id = None
    if raw_id:
        try:
            transaction_id = int(raw_id)
        except ValueError as exc:
            raise ValidationError(
                "transactionId must be a whole number",
                fields={"transactionId": ["Must be a whole number."]},
            ) from exc

    engine = CreditCardTransferEngine(get_session_factory())
    transfers = engine.list_transfers(user_id, transaction_id)
    return jsonify({"transfers": [serialize_transfer(t) for t in transfers]})


@bp.post("/budget/credit-card-automation")
def budget_assignment():
    user_id = current_user_id()
    form = BudgetAssignmentForm.from_mapping(request_payload())
    form.raise_for_errors()

    engine = CreditCardTransferEngine(get_session_factory())
    result = engine.process_budget_assignment(
        user_id, form.budget_id, form.assigned_amount  # type: ignore[arg-type]
    )
    return jsonify(result.to_dict())


@bp.post("/budget/transfer")
def cover_overspending():
    user_id = current_user_id()
    form = CoverOverspendingForm.from_mapping(request_payload())
    form.raise_for_errors()

    engine = CreditCardTransferEngine(get_session_factory())
    result = engine.cover_overspending(
        user_id,
        form.from_budget_id,  # type: ignore[arg-type]
        form.overspent_budget_ids,
        form.amount,  # type: ignore[arg-type]
    )
    return jsonify(result.to_dict())
