"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Transaction(SQLModel, table=True):
    """A single ledger transaction imported or hand-entered."""

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    account_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    budget_id: Optional[int] = Field(default=None, foreign_key="budget.id")
    amount: float = Field(nullable=False, description="Positive for inflow, negative for outflow")
    description: str = Field(default="", max_length=255)
    category: str = Field(default="", max_length=128)
    occurred_at: datetime = Field(nullable=False, index=True)
    is_manual: bool = Field(default=False, nullable=False)
    cleared: bool = Field(default=False, nullable=False)
    external_id: Optional[str] = Field(default=None, index=True, max_length=128)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
