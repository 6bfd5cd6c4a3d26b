"""Budget transfer repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.budget_transfer import BudgetTransfer


class BudgetTransferRepository(Protocol):
    """Read access to the append-only transfer ledger."""

    def list_recent(
        self, *, user_id: int, transaction_id: Optional[int] = None, limit: Optional[int] = 20
    ) -> list[BudgetTransfer]:
        """List transfers newest first, optionally for one transaction."""
        ...
