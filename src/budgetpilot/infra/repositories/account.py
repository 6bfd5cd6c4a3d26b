"""SQLModel implementation of Account repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.account import CREDIT_TYPES, Account
from ..database import SessionFactory


class SQLModelAccountRepository:
    """SQLModel-based account repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        with self.session_factory() as session:
            return session.exec(
                select(Account).where(Account.id == account_id, Account.user_id == user_id)
            ).first()

    def list_all(self, *, user_id: int) -> list[Account]:
        """List all accounts ordered by ID."""
        with self.session_factory() as session:
            statement = (
                select(Account)
                .where(Account.user_id == user_id)
                .order_by(Account.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def list_credit(self, *, user_id: int) -> list[Account]:
        """List credit accounts ordered by ID."""
        with self.session_factory() as session:
            statement = (
                select(Account)
                .where(Account.user_id == user_id)
                .where(Account.account_type.in_(sorted(CREDIT_TYPES)))  # type: ignore
                .order_by(Account.id)  # type: ignore
            )
            return list(session.exec(statement).all())
