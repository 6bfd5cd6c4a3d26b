"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Mapping, Sequence


class BudgetPilotError(Exception):
    """Base exception for the reconciliation and planning core."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BudgetPilotError):
    """Input has the wrong shape or violates a business rule."""

    code = "validation_error"

    def __init__(
        self, message: str, *, fields: Mapping[str, Sequence[str]] | None = None
    ) -> None:
        super().__init__(message)
        self.fields = {key: list(value) for key, value in (fields or {}).items()}


class UnpayableScheduleError(BudgetPilotError):
    """The payoff simulation cannot converge with the offered payments."""

    code = "unpayable_schedule"


class NoCreditCardAccountError(BudgetPilotError):
    """A credit-card transfer was requested but the user has no credit account."""

    code = "no_credit_card_account"


class NotFoundError(BudgetPilotError):
    """Entity does not exist or is not owned by the caller."""

    code = "not_found"


class StorageError(BudgetPilotError):
    """The persistence layer failed; the original error is chained as ``__cause__``."""

    code = "storage_error"


__all__ = [
    "BudgetPilotError",
    "NoCreditCardAccountError",
    "NotFoundError",
    "StorageError",
    "UnpayableScheduleError",
    "ValidationError",
]
