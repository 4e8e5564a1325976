"""Fake reconciliation scheduler for testing.

Records lifecycle calls and returns a canned sweep result from
``trigger_now`` without touching a database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from quotakeeper.domains.usage.protocols import ReconciliationSchedulerProtocol
from quotakeeper.schemas.reconciliation import SchedulerStatus, SweepResult


class FakeReconciliationScheduler(ReconciliationSchedulerProtocol):
    """Test implementation of ReconciliationSchedulerProtocol.

    Usage:
        scheduler = FakeReconciliationScheduler()
        scheduler.set_result(SweepResult(reset_count=3))

        result = await scheduler.trigger_now()
        assert scheduler.trigger_count == 1
    """

    def __init__(self, interval_seconds: float = 86_400.0) -> None:
        """Initialize stopped, with an empty sweep result."""
        self._interval = interval_seconds
        self._running = False
        self._result = SweepResult()
        self._last_run_at: Optional[datetime] = None
        self.start_count = 0
        self.stop_count = 0
        self.trigger_count = 0

    def set_result(self, result: SweepResult, run_at: Optional[datetime] = None) -> None:
        """Configure what the next triggers return and report in status."""
        self._result = result
        self._last_run_at = run_at

    def start(self) -> None:
        self._running = True
        self.start_count += 1

    async def stop(self) -> None:
        self._running = False
        self.stop_count += 1

    async def trigger_now(self) -> SweepResult:
        self.trigger_count += 1
        return self._result

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self._running,
            interval_seconds=self._interval,
            last_run_at=self._last_run_at,
            last_reset_count=self._result.reset_count if self._last_run_at else None,
            last_failed_count=self._result.failed_count if self._last_run_at else None,
        )
