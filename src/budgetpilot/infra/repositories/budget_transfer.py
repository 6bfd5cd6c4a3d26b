"""SQLModel implementation of the budget transfer ledger reads."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.budget_transfer import BudgetTransfer
from ..database import SessionFactory


class SQLModelBudgetTransferRepository:
    """Read-only access to transfers; rows are written by the transfer engine."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def list_recent(
        self, *, user_id: int, transaction_id: Optional[int] = None, limit: Optional[int] = 20
    ) -> list[BudgetTransfer]:
        with self.session_factory() as session:
            statement = select(BudgetTransfer).where(BudgetTransfer.user_id == user_id)
            if transaction_id is not None:
                statement = statement.where(BudgetTransfer.transaction_id == transaction_id)
            statement = statement.order_by(
                BudgetTransfer.created_at.desc(),  # type: ignore
                BudgetTransfer.id.desc(),  # type: ignore
            )
            if limit is not None:
                statement = statement.limit(limit)
            return list(session.exec(statement).all())
