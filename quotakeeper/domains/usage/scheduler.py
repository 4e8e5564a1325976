"""Reconciliation scheduler: periodic background sweep.

Owned by the container and started/stopped by the application lifespan. The
loop sweeps once on start, then waits ``interval_seconds`` on a shutdown
event between sweeps so ``stop()`` wakes it immediately instead of after the
next interval. A sweep that is already running when ``stop()`` is called runs
to completion.
"""

import asyncio
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.core.logging import logger
from quotakeeper.core.protocols.metrics import UsageMetrics
from quotakeeper.domains.usage.billing_cycle import utc_now
from quotakeeper.domains.usage.protocols import (
    CycleReconcilerProtocol,
    ReconciliationSchedulerProtocol,
)
from quotakeeper.domains.usage.types import ResetTrigger
from quotakeeper.schemas.reconciliation import SchedulerStatus, SweepResult

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class ReconciliationScheduler(ReconciliationSchedulerProtocol):
    """Runs ``reconcile_due`` on a fixed interval in an asyncio task."""

    DEFAULT_INTERVAL_SECONDS = 86_400.0

    def __init__(
        self,
        reconciler: CycleReconcilerProtocol,
        session_factory: SessionFactory,
        metrics: UsageMetrics,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        shutdown: Optional[asyncio.Event] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the scheduler.

        Args:
            reconciler: Performs the sweep.
            session_factory: Opens a database session per sweep.
            metrics: Records whole-sweep failures.
            interval_seconds: Delay between the end of one sweep and the next.
            shutdown: Event that stops the loop when set. A private one is
                created if omitted.
            clock: Source of the current UTC time for status timestamps.
        """
        self._reconciler = reconciler
        self._session_factory = session_factory
        self._metrics = metrics
        self._interval = interval_seconds
        self._shutdown = shutdown
        self._clock = clock

        self._task: Optional[asyncio.Task] = None
        self._next_fire_at: Optional[datetime] = None
        self._last_run_at: Optional[datetime] = None
        self._last_result: Optional[SweepResult] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop. A second call while running is a no-op."""
        if self.running:
            return
        if self._shutdown is None or self._shutdown.is_set():
            self._shutdown = asyncio.Event()
        self._task = asyncio.create_task(self._loop(self._shutdown))
        logger.info(f"[ReconciliationScheduler] Started (interval={self._interval:.0f}s)")

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it."""
        if self._shutdown is not None:
            self._shutdown.set()
        task, self._task = self._task, None
        if task is not None:
            await task
            logger.info("[ReconciliationScheduler] Stopped")

    async def trigger_now(self) -> SweepResult:
        """Sweep immediately. Errors propagate to the caller."""
        return await self._sweep()

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            running=self.running,
            interval_seconds=self._interval,
            next_fire_at=self._next_fire_at if self.running else None,
            last_run_at=self._last_run_at,
            last_reset_count=self._last_result.reset_count if self._last_result else None,
            last_failed_count=self._last_result.failed_count if self._last_result else None,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _sweep(self) -> SweepResult:
        async with self._session_factory() as db:
            result = await self._reconciler.reconcile_due(db)
        self._last_run_at = self._clock()
        self._last_result = result
        return result

    async def _loop(self, shutdown: asyncio.Event) -> None:
        try:
            while not shutdown.is_set():
                try:
                    await self._sweep()
                except Exception:
                    logger.error("[ReconciliationScheduler] Sweep failed", exc_info=True)
                    self._metrics.record_reconciliation_failure(ResetTrigger.SWEEP.value)

                self._next_fire_at = self._clock() + timedelta(seconds=self._interval)
                try:
                    await asyncio.wait_for(shutdown.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            self._next_fire_at = None
