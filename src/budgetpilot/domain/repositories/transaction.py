"""Transaction repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for managing transaction entities."""

    def list_since(self, since: datetime, *, user_id: int) -> list[Transaction]:
        """Transactions dated on or after the calendar day of ``since``, newest first."""
        ...

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        ...
