"""Envelope budget categories."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

CREDIT_CARD_PAYMENTS_GROUP = "Credit Card Payments"


class Budget(SQLModel, table=True):
    """Money assigned to a spending category for one month."""

    __tablename__: ClassVar[str] = "budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128, index=True)
    category: str = Field(nullable=False, max_length=64, description="Category group name")
    amount: float = Field(default=0.0, nullable=False, description="Budgeted amount")
    spent: float = Field(default=0.0, nullable=False)
    month: int = Field(nullable=False, ge=1, le=12)
    year: int = Field(nullable=False)

    @property
    def available(self) -> float:
        return round(self.amount - self.spent, 2)
