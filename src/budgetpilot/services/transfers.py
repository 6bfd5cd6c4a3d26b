"""Atomic recording of credit-card payments and their budget transfers.

A card payment writes two transaction legs, two account balances, up to two
budget rows and one ``BudgetTransfer`` ledger entry inside a single session;
a failure at any step leaves the database exactly as it was. Budget
assignment automation and covering overspent budgets move money between
budgets under the same guarantee.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlmodel import Session, select

from ..errors import NoCreditCardAccountError, NotFoundError, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.budget_transfer import SQLModelBudgetTransferRepository
from ..logging_config import get_logger
from ..models.account import CREDIT_TYPES, Account
from ..models.budget import CREDIT_CARD_PAYMENTS_GROUP, Budget
from ..models.budget_transfer import BudgetTransfer
from ..models.transaction import Transaction

logger = get_logger(__name__)

TRANSFER_REASON = "Credit card payment automation"
RECENT_TRANSFER_LIMIT = 20


@dataclass(slots=True)
class TransactionDraft:
    """Unsaved transaction leg as received from a caller."""

    account_id: Optional[int]
    amount: float
    description: str = ""
    category: str = ""
    occurred_at: Optional[datetime] = None
    budget_id: Optional[int] = None


@dataclass(slots=True)
class TransferResult:
    checking_transaction: Transaction
    credit_card_transaction: Transaction
    transfer: BudgetTransfer

    def to_dict(self) -> dict[str, Any]:
        return {
            "checkingTransaction": serialize_transaction(self.checking_transaction),
            "creditCardTransaction": serialize_transaction(self.credit_card_transaction),
            "transfer": serialize_transfer(self.transfer),
        }


@dataclass(slots=True)
class AssignmentResult:
    """Money moved out of a spending budget to cover card expenses."""

    budget: Budget
    transferred: float
    transfers: list[tuple[str, BudgetTransfer]] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.transfers:
            return f"No uncovered credit card expenses found in {self.budget.name}"
        moved = ", ".join(
            f"${transfer.amount:.2f} to {card_name}" for card_name, transfer in self.transfers
        )
        return (
            f"Transferred ${self.transferred:.2f} from {self.budget.name} "
            f"to credit card payments: {moved}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "transferAmount": self.transferred,
            "fromBudget": serialize_budget(self.budget),
            "creditCardTransfers": [
                {"creditCard": card_name, "amount": transfer.amount}
                for card_name, transfer in self.transfers
            ],
            "transfers": [serialize_transfer(transfer) for _, transfer in self.transfers],
        }


@dataclass(slots=True)
class CoverResult:
    source_budget: Budget
    amount: float
    updated_budgets: list[Budget]
    transfers: list[BudgetTransfer]

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": f"Moved ${self.amount:.2f} to cover overspending",
            "sourceBudget": serialize_budget(self.source_budget),
            "updatedBudgets": [serialize_budget(budget) for budget in self.updated_budgets],
            "transfers": [serialize_transfer(transfer) for transfer in self.transfers],
        }


def serialize_transaction(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id,
        "accountId": txn.account_id,
        "budgetId": txn.budget_id,
        "amount": txn.amount,
        "description": txn.description,
        "category": txn.category,
        "date": txn.occurred_at.isoformat(),
        "isManual": txn.is_manual,
        "cleared": txn.cleared,
    }


def serialize_transfer(transfer: BudgetTransfer) -> dict[str, Any]:
    return {
        "id": transfer.id,
        "fromBudgetId": transfer.from_budget_id,
        "toBudgetId": transfer.to_budget_id,
        "transactionId": transfer.transaction_id,
        "amount": transfer.amount,
        "reason": transfer.reason,
        "automated": transfer.automated,
        "createdAt": transfer.created_at.isoformat(),
    }


def serialize_budget(budget: Budget) -> dict[str, Any]:
    return {
        "id": budget.id,
        "name": budget.name,
        "category": budget.category,
        "amount": budget.amount,
        "spent": budget.spent,
        "available": budget.available,
        "month": budget.month,
        "year": budget.year,
    }


def match_credit_card(
    credit_accounts: Sequence[Account],
    description: str,
    explicit_account_id: Optional[int] = None,
) -> Account:
    """Pick the card a payment is meant for.

    Order of preference: explicit id, first card whose name appears in the
    description, then the first card. The last fallback can pick the wrong
    card when a user holds several and the description names none of them.
    """

    if not credit_accounts:
        raise NoCreditCardAccountError("No credit card account found for this user")

    if explicit_account_id is not None:
        for account in credit_accounts:
            if account.id == explicit_account_id:
                return account
        raise NotFoundError("Credit card account not found")

    haystack = (description or "").lower()
    for account in credit_accounts:
        if account.name and account.name.lower() in haystack:
            return account
    return credit_accounts[0]


class CreditCardTransferEngine:
    """Records both legs of a card payment plus the envelope transfer."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.transfers = SQLModelBudgetTransferRepository(session_factory)

    def record_credit_card_transfer(
        self,
        user_id: int,
        checking_leg: TransactionDraft,
        credit_card_leg: TransactionDraft,
    ) -> TransferResult:
        """Post a card payment atomically.

        Raises:
            ValidationError: legs disagree on amount or the source is not checking.
            NoCreditCardAccountError: the user holds no credit account.
            StorageError: the database failed; nothing was written.
        """

        amount = round(abs(checking_leg.amount or 0.0), 2)
        if amount == 0:
            raise ValidationError(
                "Payment amount must be non-zero", fields={"amount": ["Required."]}
            )
        if abs(round(abs(credit_card_leg.amount or 0.0), 2) - amount) > 0.005:
            raise ValidationError("Both legs of a credit card payment must have the same amount")
        if checking_leg.account_id is None:
            raise ValidationError(
                "Checking account is required", fields={"fromAccountId": ["Required."]}
            )

        occurred_at = checking_leg.occurred_at or datetime.now(timezone.utc)

        with self.session_factory() as session:
            checking = session.exec(
                select(Account).where(
                    Account.id == checking_leg.account_id, Account.user_id == user_id
                )
            ).first()
            if checking is None:
                raise NotFoundError("Checking account not found")
            if not checking.is_payment_source:
                raise ValidationError("Payments must come from a checking account")

            cards = list(
                session.exec(
                    select(Account)
                    .where(Account.user_id == user_id)
                    .where(Account.account_type.in_(sorted(CREDIT_TYPES)))  # type: ignore
                    .order_by(Account.id)  # type: ignore
                ).all()
            )
            card = match_credit_card(
                cards,
                f"{checking_leg.description} {credit_card_leg.description}",
                credit_card_leg.account_id,
            )

            from_budget = self._owned_budget(session, checking_leg.budget_id, user_id)
            to_budget = self._owned_budget(session, credit_card_leg.budget_id, user_id)
            if to_budget is None:
                to_budget = self._payment_budget(
                    session, card.name, occurred_at.month, occurred_at.year, user_id
                )

            checking_txn = self._post_leg(
                session,
                Transaction(
                    user_id=user_id,
                    account_id=checking.id,  # type: ignore[arg-type]
                    budget_id=to_budget.id,
                    amount=-amount,
                    description=checking_leg.description or f"Payment To: {card.name}",
                    category=checking_leg.category or CREDIT_CARD_PAYMENTS_GROUP,
                    occurred_at=occurred_at,
                    is_manual=True,
                ),
            )
            card_txn = self._post_leg(
                session,
                Transaction(
                    user_id=user_id,
                    account_id=card.id,  # type: ignore[arg-type]
                    budget_id=None,
                    amount=amount,
                    description=credit_card_leg.description or f"Payment From: {checking.name}",
                    category=credit_card_leg.category or CREDIT_CARD_PAYMENTS_GROUP,
                    occurred_at=occurred_at,
                    is_manual=True,
                ),
            )

            checking.balance = round(checking.balance - amount, 2)
            card.balance = round(card.balance + amount, 2)
            session.add(checking)
            session.add(card)

            if from_budget is not None:
                from_budget.amount = round(from_budget.amount - amount, 2)
                session.add(from_budget)
                if from_budget.available < 0:
                    logger.warning(
                        "Budget overspent by credit card payment",
                        extra={
                            "user_id": user_id,
                            "budget_id": from_budget.id,
                            "available": from_budget.available,
                        },
                    )
            to_budget.amount = round(to_budget.amount + amount, 2)
            to_budget.spent = round(to_budget.spent + amount, 2)
            session.add(to_budget)

            transfer = BudgetTransfer(
                user_id=user_id,
                from_budget_id=from_budget.id if from_budget is not None else None,
                to_budget_id=to_budget.id,  # type: ignore[arg-type]
                transaction_id=checking_txn.id,
                amount=amount,
                reason=TRANSFER_REASON,
                automated=True,
            )
            session.add(transfer)
            session.flush()
            session.refresh(transfer)

            logger.info(
                "Recorded credit card payment",
                extra={
                    "user_id": user_id,
                    "amount": amount,
                    "checking_account_id": checking.id,
                    "credit_account_id": card.id,
                    "transfer_id": transfer.id,
                },
            )
            return TransferResult(
                checking_transaction=checking_txn,
                credit_card_transaction=card_txn,
                transfer=transfer,
            )

    def list_transfers(
        self, user_id: int, transaction_id: Optional[int] = None
    ) -> list[BudgetTransfer]:
        """Newest transfers first; all of them for one transaction, else the latest 20."""

        limit = None if transaction_id is not None else RECENT_TRANSFER_LIMIT
        return self.transfers.list_recent(
            user_id=user_id, transaction_id=transaction_id, limit=limit
        )

    def process_budget_assignment(
        self, user_id: int, budget_id: int, assigned_amount: float
    ) -> AssignmentResult:
        """Move newly assigned money to the card payment budgets it has to cover.

        Credit-card expenses categorised under the budget's name that no
        earlier transfer from this budget covers are paid for oldest first,
        each up to its own amount, until ``assigned_amount`` runs out. Every
        move lands in the "{card} Payment" budget for the same month and is
        recorded as one automated transfer linked to the expense.
        """

        if not math.isfinite(assigned_amount) or assigned_amount <= 0:
            raise ValidationError(
                "Assigned amount must be positive", fields={"assignedAmount": ["Must be positive."]}
            )

        with self.session_factory() as session:
            budget = self._get_budget(session, budget_id, user_id)

            covered = select(BudgetTransfer.transaction_id).where(
                BudgetTransfer.from_budget_id == budget.id,
                BudgetTransfer.transaction_id.is_not(None),  # type: ignore
            )
            expenses = session.exec(
                select(Transaction, Account)
                .join(Account, Account.id == Transaction.account_id)  # type: ignore
                .where(Transaction.user_id == user_id)
                .where(Account.account_type.in_(sorted(CREDIT_TYPES)))  # type: ignore
                .where(Transaction.amount < 0)
                .where(Transaction.category == budget.name)
                .where(Transaction.id.not_in(covered))  # type: ignore
                .order_by(Transaction.occurred_at, Transaction.id)  # type: ignore
            ).all()

            result = AssignmentResult(budget=budget, transferred=0.0)
            remaining = round(assigned_amount, 2)
            for expense, card in expenses:
                if remaining <= 0:
                    break
                amount = round(min(remaining, abs(expense.amount)), 2)
                payment_budget = self._payment_budget(
                    session, card.name, budget.month, budget.year, user_id
                )
                budget.amount = round(budget.amount - amount, 2)
                payment_budget.amount = round(payment_budget.amount + amount, 2)
                session.add(budget)
                session.add(payment_budget)

                transfer = BudgetTransfer(
                    user_id=user_id,
                    from_budget_id=budget.id,
                    to_budget_id=payment_budget.id,  # type: ignore[arg-type]
                    transaction_id=expense.id,
                    amount=amount,
                    reason=f"Auto-transfer to cover {card.name} expense in {budget.name}",
                    automated=True,
                )
                session.add(transfer)
                session.flush()
                session.refresh(transfer)

                result.transfers.append((card.name, transfer))
                result.transferred = round(result.transferred + amount, 2)
                remaining = round(remaining - amount, 2)

            logger.info(
                "Processed budget assignment",
                extra={
                    "user_id": user_id,
                    "budget_id": budget.id,
                    "assigned_amount": assigned_amount,
                    "transferred": result.transferred,
                    "transfer_count": len(result.transfers),
                },
            )
            return result

    def cover_overspending(
        self,
        user_id: int,
        from_budget_id: int,
        overspent_budget_ids: Sequence[int],
        amount: float,
    ) -> CoverResult:
        """Move ``amount`` out of one budget to cover overspent ones.

        Each overspent target receives a share proportional to its
        overspending, capped at that overspending; the last one takes the
        remainder. One manual transfer row is recorded per funded target.

        Raises:
            ValidationError: bad amount, insufficient funds or nothing overspent.
            NotFoundError: a budget is missing or belongs to someone else.
        """

        if not math.isfinite(amount) or amount <= 0:
            raise ValidationError(
                "Transfer amount must be positive", fields={"amount": ["Must be positive."]}
            )
        target_ids = sorted(set(overspent_budget_ids))
        if not target_ids:
            raise ValidationError(
                "Choose at least one overspent budget",
                fields={"overspentBudgets": ["Required."]},
            )
        if from_budget_id in target_ids:
            raise ValidationError("A budget cannot cover its own overspending")
        amount = round(amount, 2)

        with self.session_factory() as session:
            source = self._get_budget(session, from_budget_id, user_id)
            if source.available < amount:
                raise ValidationError("Insufficient funds in source budget")

            targets = list(
                session.exec(
                    select(Budget)
                    .where(Budget.user_id == user_id)
                    .where(Budget.id.in_(target_ids))  # type: ignore
                    .order_by(Budget.id)  # type: ignore
                ).all()
            )
            if len(targets) != len(target_ids):
                raise NotFoundError("Budget not found")

            overspent = [
                (budget, round(budget.spent - budget.amount, 2))
                for budget in targets
                if budget.spent - budget.amount > 0.005
            ]
            total_overspent = sum(gap for _, gap in overspent)
            if not overspent:
                raise ValidationError("No overspending found in target budgets")

            source.amount = round(source.amount - amount, 2)
            session.add(source)

            updated: list[Budget] = []
            transfers: list[BudgetTransfer] = []
            remaining = amount
            for index, (budget, gap) in enumerate(overspent):
                if index == len(overspent) - 1:
                    share = remaining
                else:
                    share = round(min(gap, gap / total_overspent * amount), 2)
                remaining = round(remaining - share, 2)
                if share <= 0:
                    continue
                budget.amount = round(budget.amount + share, 2)
                session.add(budget)
                transfer = BudgetTransfer(
                    user_id=user_id,
                    from_budget_id=source.id,
                    to_budget_id=budget.id,  # type: ignore[arg-type]
                    amount=share,
                    reason=f"Covered overspending: moved ${share:.2f} from {source.name}",
                    automated=False,
                )
                session.add(transfer)
                updated.append(budget)
                transfers.append(transfer)

            session.flush()
            for row in (source, *updated, *transfers):
                session.refresh(row)
            logger.info(
                "Covered overspent budgets",
                extra={
                    "user_id": user_id,
                    "from_budget_id": source.id,
                    "amount": amount,
                    "budget_count": len(updated),
                },
            )
            return CoverResult(
                source_budget=source, amount=amount, updated_budgets=updated, transfers=transfers
            )

    def _post_leg(self, session: Session, transaction: Transaction) -> Transaction:
        session.add(transaction)
        session.flush()
        session.refresh(transaction)
        return transaction

    @staticmethod
    def _get_budget(session: Session, budget_id: int, user_id: int) -> Budget:
        budget = session.exec(
            select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        ).first()
        if budget is None:
            raise NotFoundError("Budget not found")
        return budget

    @classmethod
    def _owned_budget(
        cls, session: Session, budget_id: Optional[int], user_id: int
    ) -> Optional[Budget]:
        if budget_id is None:
            return None
        return cls._get_budget(session, budget_id, user_id)

    @staticmethod
    def _payment_budget(
        session: Session, card_name: str, month: int, year: int, user_id: int
    ) -> Budget:
        """Find or create the card's payment envelope for one month."""

        name = f"{card_name} Payment"
        budget = session.exec(
            select(Budget)
            .where(Budget.user_id == user_id)
            .where(Budget.name == name)
            .where(Budget.month == month)
            .where(Budget.year == year)
        ).first()
        if budget is None:
            budget = Budget(
                user_id=user_id,
                name=name,
                category=CREDIT_CARD_PAYMENTS_GROUP,
                amount=0.0,
                spent=0.0,
                month=month,
                year=year,
            )
            session.add(budget)
            session.flush()
            logger.info(
                "Created credit card payment budget",
                extra={"user_id": user_id, "budget_id": budget.id, "budget_name": name},
            )
        return budget
