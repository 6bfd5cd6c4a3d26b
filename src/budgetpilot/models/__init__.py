"""SQLModel table exports."""

from .account import Account
from .budget import Budget
from .budget_transfer import BudgetTransfer
from .debt_plan import DebtPlan, PaymentRecord
from .transaction import Transaction
from .user import User

__all__ = [
    "Account",
    "Budget",
    "BudgetTransfer",
    "DebtPlan",
    "PaymentRecord",
    "Transaction",
    "User",
]
