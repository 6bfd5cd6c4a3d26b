"""Transaction entry with credit-card payment automation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from ..errors import NoCreditCardAccountError, NotFoundError, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.account import SQLModelAccountRepository
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..logging_config import get_logger
from ..models.transaction import Transaction
from .classifier import KeywordPaymentClassifier, PaymentClassifier
from .transfers import (
    CreditCardTransferEngine,
    TransactionDraft,
    TransferResult,
    serialize_transaction,
)

logger = get_logger(__name__)


@dataclass(slots=True)
class CreatedTransaction:
    transaction: Transaction
    transfer: Optional[TransferResult] = None

    @property
    def automated(self) -> bool:
        return self.transfer is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "transaction": serialize_transaction(self.transaction),
            "automated": self.automated,
        }
        if self.transfer is not None:
            data.update(self.transfer.to_dict())
        return data


class TransactionService:
    """Stores transactions, routing card payments through the transfer engine."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        classifier: PaymentClassifier | None = None,
        transfer_engine: CreditCardTransferEngine | None = None,
    ):
        self.accounts = SQLModelAccountRepository(session_factory)
        self.transactions = SQLModelTransactionRepository(session_factory)
        self.classifier = classifier or KeywordPaymentClassifier()
        self.transfer_engine = transfer_engine or CreditCardTransferEngine(session_factory)

    def create_transaction(self, user_id: int, draft: TransactionDraft) -> CreatedTransaction:
        if draft.account_id is None:
            raise ValidationError("Account is required", fields={"accountId": ["Required."]})
        if not draft.amount:
            raise ValidationError("Amount cannot be zero", fields={"amount": ["Required."]})

        account = self.accounts.get_by_id(draft.account_id, user_id=user_id)
        if account is None:
            raise NotFoundError("Account not found")

        occurred_at = draft.occurred_at or datetime.now(timezone.utc)
        candidate = Transaction(
            user_id=user_id,
            account_id=draft.account_id,
            budget_id=draft.budget_id,
            amount=draft.amount,
            description=draft.description,
            category=draft.category,
            occurred_at=occurred_at,
            is_manual=True,
        )

        card_names = [card.name for card in self.accounts.list_credit(user_id=user_id)]
        if self.classifier.is_credit_card_payment(candidate, account, card_names):
            credit_leg = TransactionDraft(
                account_id=None,
                amount=abs(draft.amount),
                description=f"Payment From: {account.name}",
                category=draft.category,
                occurred_at=occurred_at,
            )
            checking_leg = TransactionDraft(
                account_id=draft.account_id,
                amount=draft.amount,
                description=draft.description,
                category=draft.category,
                occurred_at=occurred_at,
                budget_id=draft.budget_id,
            )
            try:
                result = self.transfer_engine.record_credit_card_transfer(
                    user_id, checking_leg, credit_leg
                )
            except NoCreditCardAccountError:
                logger.info(
                    "Card payment detected without a credit account; storing plain transaction",
                    extra={"user_id": user_id, "account_id": draft.account_id},
                )
            else:
                return CreatedTransaction(result.checking_transaction, result)

        stored = self.transactions.create(candidate, user_id=user_id)
        return CreatedTransaction(stored)
