"""Usage domain exceptions."""

from typing import Optional
from uuid import UUID

from quotakeeper.core.exceptions import (
    BadRequestError,
    InvalidStateError,
    NotFoundException,
    QuotaKeeperException,
)


class AccountNotFoundError(NotFoundException):
    """Raised when the account does not exist. Nothing was mutated."""

    def __init__(self, account_id: UUID) -> None:
        """Initialize with the missing account ID."""
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class QuotaExceededError(InvalidStateError):
    """Raised at the API boundary when an increment was refused by the monthly limit."""

    def __init__(
        self,
        account_id: UUID,
        limit: int,
        current_usage: int,
        message: Optional[str] = None,
    ) -> None:
        """Initialize with the account's current usage and limit."""
        if message is None:
            message = f"Usage limit exceeded. Current: {current_usage}, Limit: {limit}"
        self.account_id = account_id
        self.limit = limit
        self.current_usage = current_usage
        super().__init__(message)


class DuplicateRequestSuppressedError(InvalidStateError):
    """Raised at the API boundary when an attempt arrived inside the suppression window."""

    def __init__(self, account_id: UUID, retry_after: float, message: Optional[str] = None) -> None:
        """Initialize with the back-off the caller should observe."""
        if message is None:
            message = "Request too frequent. Please wait before trying again."
        self.account_id = account_id
        self.retry_after = retry_after
        super().__init__(message)


class ReconciliationError(QuotaKeeperException):
    """Raised when a billing-cycle reset could not be evaluated or applied.

    Request-path callers log this and continue against the not-yet-reset
    counter; the next lazy or scheduled reconciliation retries.
    """

    def __init__(self, account_id: UUID, cause: BaseException) -> None:
        """Initialize with the account and the underlying failure."""
        self.account_id = account_id
        self.cause = cause
        super().__init__(f"Reconciliation failed for account {account_id}: {cause}")


class InvalidUsageValueError(BadRequestError):
    """Raised when an administrative usage override is out of range."""

    def __init__(self, account_id: UUID, usage_count: int, limit: int) -> None:
        """Initialize with the refused value and the account's limit."""
        self.account_id = account_id
        self.usage_count = usage_count
        self.limit = limit
        super().__init__(
            f"Usage count {usage_count} is outside 0..{limit} for account {account_id}"
        )
