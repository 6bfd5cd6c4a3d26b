"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .budget_transfer import SQLModelBudgetTransferRepository
from .debt_plan import SQLModelDebtPlanRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelBudgetTransferRepository",
    "SQLModelDebtPlanRepository",
    "SQLModelTransactionRepository",
]
