"""Account repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.account import Account


class AccountRepository(Protocol):
    """Repository for managing account entities."""

    def get_by_id(self, account_id: int, *, user_id: int) -> Optional[Account]:
        """Retrieve an account by ID."""
        ...

    def list_all(self, *, user_id: int) -> list[Account]:
        """List all accounts ordered by ID."""
        ...

    def list_credit(self, *, user_id: int) -> list[Account]:
        """List credit accounts ordered by ID."""
        ...
