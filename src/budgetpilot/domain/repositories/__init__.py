"""Repository protocol definitions for domain layer."""

from .account import AccountRepository
from .budget_transfer import BudgetTransferRepository
from .debt_plan import DebtPlanRepository
from .transaction import TransactionRepository

__all__ = [
    "AccountRepository",
    "BudgetTransferRepository",
    "DebtPlanRepository",
    "TransactionRepository",
]
