"""Persisted debt payoff plans and their recorded payments."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, Index, text
from sqlmodel import Field, SQLModel

PLAN_STRATEGIES = ("snowball", "avalanche", "ai_custom")
PLAN_STATUSES = ("active", "completed", "paused")
TRACKING_MODES = ("automatic", "manual")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DebtPlan(SQLModel, table=True):
    """A payoff strategy; at most one ``active`` plan exists per user."""

    __tablename__: ClassVar[str] = "debt_plan"
    __table_args__ = (
        Index(
            "uq_debt_plan_user_active",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    title: str = Field(nullable=False, max_length=128)
    description: str = Field(default="", max_length=512)
    strategy: str = Field(default="snowball", nullable=False, max_length=32)
    steps: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    total_debt: float = Field(default=0.0, nullable=False)
    monthly_payment: float = Field(default=0.0, nullable=False)
    estimated_months: int = Field(default=0, nullable=False)
    total_interest: Optional[float] = Field(default=None)
    interest_saved: Optional[float] = Field(default=None)
    payoff_date: Optional[date] = Field(default=None)
    payoff_order: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    debts: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    progress: float = Field(default=0.0, nullable=False)
    status: str = Field(default="active", nullable=False, max_length=16, index=True)
    tracking_mode: str = Field(default="automatic", nullable=False, max_length=16)
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)


class PaymentRecord(SQLModel, table=True):
    """A payment recorded by hand against a manual-tracking plan."""

    __tablename__: ClassVar[str] = "debt_plan_payment"

    id: Optional[int] = Field(default=None, primary_key=True)
    plan_id: int = Field(foreign_key="debt_plan.id", nullable=False, index=True)
    amount: float = Field(nullable=False)
    target_debt: str = Field(default="primary", max_length=128)
    paid_on: date = Field(nullable=False)
    month: str = Field(nullable=False, max_length=16, description="Display label, e.g. 'Jan 2024'")
    created_at: datetime = Field(default_factory=_utcnow, nullable=False)
