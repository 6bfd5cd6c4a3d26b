"""Bank and credit accounts linked to transactions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

PAYMENT_SOURCE_TYPES = frozenset({"checking", "depository"})
CREDIT_TYPES = frozenset({"credit"})


class Account(SQLModel, table=True):
    """A checking, savings or credit account.

    Credit accounts carry a negative ``balance`` while money is owed.
    """

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    account_type: str = Field(default="checking", nullable=False, max_length=32, index=True)
    balance: float = Field(default=0.0, nullable=False)
    interest_rate: Optional[float] = Field(default=None, description="Annual rate, e.g. 0.199")
    minimum_payment: Optional[float] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def is_credit(self) -> bool:
        return (self.account_type or "").lower() in CREDIT_TYPES

    @property
    def is_payment_source(self) -> bool:
        return (self.account_type or "").lower() in PAYMENT_SOURCE_TYPES
