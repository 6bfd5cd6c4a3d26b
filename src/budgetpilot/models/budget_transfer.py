"""Append-only ledger of money moved between budgets."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class BudgetTransfer(SQLModel, table=True):
    """Audit record of an amount moved from one budget to another."""

    __tablename__: ClassVar[str] = "budget_transfer"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    # None when the payment was not funded from a specific budget
    from_budget_id: Optional[int] = Field(default=None, foreign_key="budget.id")
    to_budget_id: int = Field(foreign_key="budget.id", nullable=False)
    transaction_id: Optional[int] = Field(default=None, foreign_key="transaction.id", index=True)
    amount: float = Field(nullable=False)
    reason: str = Field(nullable=False, max_length=255)
    automated: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
