"""In-memory duplicate-request guard.

Suppresses a second increment attempt from the same account within a short
window. Entries live in a time-ordered map that is pruned on every access and
capped in size. Suitable for a single process only; with several replicas
each one suppresses on its own, and a shared implementation can be swapped in
behind DuplicateRequestGuardProtocol.

Safe for concurrent coroutines within one event loop via asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from typing import Optional
from uuid import UUID

from quotakeeper.core.logging import logger
from quotakeeper.domains.usage.protocols import DuplicateRequestGuardProtocol


class InMemoryDuplicateRequestGuard(DuplicateRequestGuardProtocol):
    """Per-account last-admitted timestamps with window-based rejection.

    Attributes:
        window_seconds: Minimum spacing between two admitted attempts.
    """

    DEFAULT_WINDOW_SECONDS = 5.0
    DEFAULT_EXPIRY_MULTIPLIER = 2.0
    DEFAULT_MAX_ENTRIES = 100_000

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        expiry_multiplier: float = DEFAULT_EXPIRY_MULTIPLIER,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        """Initialize the guard.

        Args:
            window_seconds: Attempts closer together than this are rejected.
            expiry_multiplier: Entries older than ``window * multiplier`` are dropped.
            max_entries: Hard cap on tracked accounts; oldest are evicted first.
        """
        self._window = window_seconds
        self._expiry = window_seconds * expiry_multiplier
        self._max_entries = max_entries
        self._admitted: OrderedDict[UUID, float] = OrderedDict()  # oldest first
        self._lock = asyncio.Lock()

    @property
    def window_seconds(self) -> float:
        return self._window

    async def admit(self, account_id: UUID, now: Optional[float] = None) -> bool:
        """Admit the attempt unless one was admitted less than a window ago.

        Rejected attempts leave the stored timestamp untouched, so a caller
        retrying in a tight loop is admitted once the window has passed.

        Args:
            account_id: Account making the attempt.
            now: Monotonic timestamp of the attempt; defaults to the current time.

        Returns:
            True if admitted.
        """
        now = time.monotonic() if now is None else now
        async with self._lock:
            self._prune(now)

            last = self._admitted.get(account_id)
            if last is not None and now - last < self._window:
                logger.warning(
                    f"[DuplicateGuard] Suppressed attempt for account {account_id} "
                    f"{now - last:.2f}s after the previous one"
                )
                return False

            self._admitted[account_id] = now
            self._admitted.move_to_end(account_id)
            while len(self._admitted) > self._max_entries:
                self._admitted.popitem(last=False)
            return True

    def retry_after(self, account_id: UUID, now: Optional[float] = None) -> float:
        """Seconds until ``account_id`` may be admitted again."""
        now = time.monotonic() if now is None else now
        last = self._admitted.get(account_id)
        if last is None:
            return 0.0
        return max(0.0, self._window - (now - last))

    @property
    def tracked_accounts(self) -> int:
        """Number of accounts currently remembered. Not locked; diagnostics only."""
        return len(self._admitted)

    def _prune(self, now: float) -> None:
        """Drop expired entries from the old end. Must be called under lock."""
        cutoff = now - self._expiry
        while self._admitted:
            oldest_id, oldest_ts = next(iter(self._admitted.items()))
            if oldest_ts >= cutoff:
                break
            del self._admitted[oldest_id]
