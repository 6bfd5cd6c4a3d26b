"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from datetime import datetime, time, timezone

from sqlmodel import select

from ...models.transaction import Transaction
from ..database import SessionFactory


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_since(self, since: datetime, *, user_id: int) -> list[Transaction]:
        """Transactions dated on or after the UTC calendar day of ``since``, newest first."""
        if since.tzinfo is not None:
            since = since.astimezone(timezone.utc)
        start_of_day = datetime.combine(since.date(), time.min, tzinfo=timezone.utc)
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(Transaction.occurred_at >= start_of_day)
                .order_by(Transaction.occurred_at.desc())  # type: ignore
            )
            return list(session.exec(statement).all())

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        with self.session_factory() as session:
            transaction.user_id = user_id
            session.add(transaction)
            session.flush()
            session.refresh(transaction)
            return transaction
