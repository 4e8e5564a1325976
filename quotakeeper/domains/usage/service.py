"""Usage service: the facade the API and other collaborators call.

An increment runs guard -> lazy reconcile -> atomic check-and-increment, in
that order. Reconciliation runs even for requests that the quota will refuse,
so an account over its limit at the end of a month is unblocked by its first
request in the next one.

Quota refusals and suppressed duplicates are returned as structured results;
the API layer turns them into 429 responses.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.core.exceptions import StoreUnavailableError
from quotakeeper.core.logging import logger
from quotakeeper.core.protocols.metrics import UsageMetrics
from quotakeeper.domains.accounts.repository import AccountRepositoryProtocol
from quotakeeper.domains.accounts.types import percent_used
from quotakeeper.domains.usage.billing_cycle import month_start, utc_now
from quotakeeper.domains.usage.exceptions import (
    AccountNotFoundError,
    InvalidUsageValueError,
    ReconciliationError,
)
from quotakeeper.domains.usage.protocols import (
    CycleReconcilerProtocol,
    DuplicateRequestGuardProtocol,
    QuotaEnforcerProtocol,
    ReconciliationSchedulerProtocol,
    UsageServiceProtocol,
)
from quotakeeper.domains.usage.types import ResetTrigger
from quotakeeper.schemas.account import Account
from quotakeeper.schemas.reconciliation import SchedulerStatus, SweepResult
from quotakeeper.schemas.usage import IncrementOutcome, IncrementUsageResult, UsageSnapshot

T = TypeVar("T")


class UsageService(UsageServiceProtocol):
    """Coordinates guard, reconciler and enforcer for one request."""

    DEFAULT_STORE_TIMEOUT_SECONDS = 10.0

    def __init__(
        self,
        account_repo: AccountRepositoryProtocol,
        enforcer: QuotaEnforcerProtocol,
        reconciler: CycleReconcilerProtocol,
        guard: DuplicateRequestGuardProtocol,
        scheduler: ReconciliationSchedulerProtocol,
        metrics: UsageMetrics,
        store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize with the usage domain components."""
        self._account_repo = account_repo
        self._enforcer = enforcer
        self._reconciler = reconciler
        self._guard = guard
        self._scheduler = scheduler
        self._metrics = metrics
        self._store_timeout = store_timeout_seconds
        self._clock = clock

    async def get_usage(self, db: AsyncSession, account_id: UUID) -> UsageSnapshot:
        """Current usage, reconciled first so a stale month reads as zero."""
        account = await self._reconcile_lazily(db, account_id)
        return self._snapshot(account)

    async def increment_usage(
        self, db: AsyncSession, account_id: UUID, now: Optional[float] = None
    ) -> IncrementUsageResult:
        """Record one unit of usage if the guard and the quota allow it.

        Args:
            db: Database session.
            account_id: Account to charge.
            now: Monotonic timestamp of the attempt, for the duplicate guard.

        Raises:
            AccountNotFoundError: The account does not exist.
            StoreUnavailableError: The store failed or timed out. After a
                timeout during the increment itself, whether the unit was
                recorded is unknown.
        """
        if not await self._guard.admit(account_id, now):
            self._metrics.record_increment(IncrementOutcome.DUPLICATE_SUPPRESSED.value)
            return IncrementUsageResult(
                outcome=IncrementOutcome.DUPLICATE_SUPPRESSED,
                retry_after_seconds=self._guard.retry_after(account_id, now),
            )

        was_reset = False
        try:
            reconciled = await self._bounded(
                "reconcile", self._reconciler.reconcile(db, account_id)
            )
            was_reset = reconciled.reset
        except ReconciliationError as e:
            logger.error(
                f"Lazy reconciliation failed for account {account_id}, "
                f"checking quota against the current counter: {e}"
            )

        result = await self._bounded(
            "increment_usage",
            self._enforcer.try_increment(db, account_id),
            timeout_message="timed out; the increment outcome is unknown",
        )
        outcome = (
            IncrementOutcome.ACCEPTED if result.accepted else IncrementOutcome.QUOTA_EXCEEDED
        )
        self._metrics.record_increment(outcome.value)
        return IncrementUsageResult(
            outcome=outcome,
            usage_count=result.usage_count,
            monthly_limit=result.monthly_limit,
            tier=result.tier,
            was_reset=was_reset,
        )

    async def reset_usage(
        self, db: AsyncSession, account_id: Optional[UUID] = None
    ) -> SweepResult:
        """Administrative reset.

        With an account ID the counter is zeroed and re-anchored to the
        current month unconditionally. Without one, every account whose
        period has ended is reconciled.
        """
        if account_id is None:
            return await self._reconciler.reconcile_due(db)

        now = self._clock()
        updated = await self._bounded(
            "force_reset",
            self._account_repo.force_reset(
                db, account_id=account_id, period_start=month_start(now), now=now
            ),
        )
        if updated is None:
            raise AccountNotFoundError(account_id)

        self._metrics.record_resets(ResetTrigger.ADMIN.value, 1)
        logger.info(f"Admin reset of usage for account {account_id}")
        return SweepResult(reset_count=1)

    async def set_usage(
        self, db: AsyncSession, account_id: UUID, usage_count: int
    ) -> UsageSnapshot:
        """Overwrite the counter of the current period.

        Raises:
            AccountNotFoundError: The account does not exist.
            InvalidUsageValueError: Negative, or above a metered account's limit.
        """
        account = await self._reconcile_lazily(db, account_id)
        if usage_count < 0 or (account.is_metered and usage_count > account.monthly_limit):
            raise InvalidUsageValueError(account_id, usage_count, account.monthly_limit)

        updated = await self._bounded(
            "set_usage",
            self._account_repo.set_usage(
                db, account_id=account_id, usage_count=usage_count, now=self._clock()
            ),
        )
        if updated is None:
            # Limit lowered or account removed between the read and the write.
            current = await self._account_repo.get(db, account_id=account_id)
            if current is None:
                raise AccountNotFoundError(account_id)
            raise InvalidUsageValueError(account_id, usage_count, current.monthly_limit)

        logger.info(
            f"Admin set usage for account {account_id}: "
            f"{account.usage_count} -> {updated.usage_count}"
        )
        return self._snapshot(updated)

    def get_scheduler_status(self) -> SchedulerStatus:
        return self._scheduler.status()

    async def trigger_reconciliation_now(self) -> SweepResult:
        return await self._scheduler.trigger_now()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _reconcile_lazily(self, db: AsyncSession, account_id: UUID) -> Account:
        """Reconcile, falling back to the stored row if reconciliation fails."""
        try:
            reconciled = await self._bounded(
                "reconcile", self._reconciler.reconcile(db, account_id)
            )
            return reconciled.account
        except ReconciliationError as e:
            logger.error(f"Lazy reconciliation failed for account {account_id}: {e}")

        account = await self._bounded(
            "get_account", self._account_repo.get(db, account_id=account_id)
        )
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def _bounded(
        self,
        operation: str,
        call: Awaitable[T],
        timeout_message: str = "timed out",
    ) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._store_timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                f"Store operation {operation} exceeded {self._store_timeout:.1f}s"
            )
            raise StoreUnavailableError(
                operation, f"{timeout_message} after {self._store_timeout:.1f}s"
            ) from e

    @staticmethod
    def _snapshot(account: Account) -> UsageSnapshot:
        return UsageSnapshot(
            usage_count=account.usage_count,
            monthly_limit=account.monthly_limit,
            tier=account.tier,
            percent_used=percent_used(account.tier, account.usage_count, account.monthly_limit),
            billing_period_start=account.billing_period_start,
        )
