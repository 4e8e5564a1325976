"""Shared exceptions module."""

from typing import Optional


class QuotaKeeperException(Exception):
    """Base exception for quotakeeper services."""

    pass


class NotFoundException(QuotaKeeperException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class BadRequestError(QuotaKeeperException):
    """Exception raised when a caller supplies an invalid value."""

    def __init__(self, message: Optional[str] = "Invalid request"):
        """Create a new BadRequestError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class InvalidStateError(QuotaKeeperException):
    """Exception raised when an object is in a state that forbids the action.

    Quota and duplicate-request rejections derive from this: the request is
    well-formed, but the account's current state does not admit it.
    """

    def __init__(self, message: Optional[str] = "Object is in an invalid state"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class StoreUnavailableError(QuotaKeeperException):
    """Raised when the account store cannot be reached or timed out.

    Transient. Safe to retry with backoff, except that a timed-out increment
    may or may not have been applied.
    """

    def __init__(self, operation: str, message: Optional[str] = "Account store unavailable"):
        """Create a new StoreUnavailableError instance.

        Args:
        ----
            operation (str): The store operation that failed.
            message (str, optional): The error message. Has default message.

        """
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")
