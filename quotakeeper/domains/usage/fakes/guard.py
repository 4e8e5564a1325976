"""Fake duplicate-request guard for testing.

Admits everything unless told otherwise.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from quotakeeper.domains.usage.protocols import DuplicateRequestGuardProtocol


class FakeDuplicateRequestGuard(DuplicateRequestGuardProtocol):
    """Test implementation of DuplicateRequestGuardProtocol.

    Usage:
        guard = FakeDuplicateRequestGuard()
        guard.reject(account_id)

        assert not await guard.admit(account_id)
    """

    def __init__(self, window_seconds: float = 5.0) -> None:
        """Initialize with an empty reject set and call log."""
        self._window = window_seconds
        self._rejected: set[UUID] = set()
        self.calls: list[UUID] = []

    @property
    def window_seconds(self) -> float:
        return self._window

    def reject(self, account_id: UUID) -> None:
        """Make every attempt from ``account_id`` a duplicate."""
        self._rejected.add(account_id)

    def admit_all(self) -> None:
        """Reset to default admit-all behaviour."""
        self._rejected.clear()

    async def admit(self, account_id: UUID, now: Optional[float] = None) -> bool:
        """Return True unless the account was explicitly rejected."""
        self.calls.append(account_id)
        return account_id not in self._rejected

    def retry_after(self, account_id: UUID, now: Optional[float] = None) -> float:
        """Full window for rejected accounts, else 0."""
        return self._window if account_id in self._rejected else 0.0
