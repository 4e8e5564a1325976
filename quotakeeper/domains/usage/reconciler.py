"""Billing-cycle reconciler.

Resets an account's counter once its anchor falls in a past UTC month. The
reset itself is a conditional write (``billing_period_start < period_start``),
so two reconcilers racing on one account produce exactly one reset.
"""

import time
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.core.exceptions import StoreUnavailableError
from quotakeeper.core.logging import logger
from quotakeeper.core.protocols.metrics import UsageMetrics
from quotakeeper.domains.accounts.repository import AccountRepositoryProtocol
from quotakeeper.domains.usage.billing_cycle import is_due, month_start, utc_now
from quotakeeper.domains.usage.exceptions import AccountNotFoundError, ReconciliationError
from quotakeeper.domains.usage.protocols import CycleReconcilerProtocol, ReconcileResult
from quotakeeper.domains.usage.types import ResetTrigger
from quotakeeper.schemas.account import Account
from quotakeeper.schemas.reconciliation import ReconcileFailure, SweepResult


class CycleReconciler(CycleReconcilerProtocol):
    """Lazy and sweep reconciliation over the account repository."""

    DEFAULT_BATCH_SIZE = 500

    def __init__(
        self,
        account_repo: AccountRepositoryProtocol,
        metrics: UsageMetrics,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the reconciler.

        Args:
            account_repo: Account store access.
            metrics: Reset and failure counters.
            batch_size: Due-account IDs fetched per sweep page.
            clock: Source of the current UTC time.
        """
        self._account_repo = account_repo
        self._metrics = metrics
        self._batch_size = batch_size
        self._clock = clock

    async def reconcile(
        self, db: AsyncSession, account_id: UUID, *, trigger: ResetTrigger = ResetTrigger.LAZY
    ) -> ReconcileResult:
        """Reset one account if its period has ended.

        Raises:
            AccountNotFoundError: The account does not exist.
            ReconciliationError: The store failed while reading or resetting.
        """
        now = self._clock()
        try:
            current = await self._get(db, account_id)
            if not is_due(current.billing_period_start, now):
                return ReconcileResult(reset=False, account=current)

            updated = await self._account_repo.reset_if_due(
                db, account_id=account_id, period_start=month_start(now), now=now
            )
            if updated is None:
                # Another reconciler got there first.
                return ReconcileResult(reset=False, account=await self._get(db, account_id))
        except StoreUnavailableError as e:
            self._metrics.record_reconciliation_failure(trigger.value)
            raise ReconciliationError(account_id, e) from e

        self._metrics.record_resets(trigger.value, 1)
        logger.info(
            f"Reset usage for account {account_id} "
            f"({current.usage_count} -> 0, period {updated.billing_period_start:%Y-%m}, "
            f"trigger={trigger.value})"
        )
        return ReconcileResult(reset=True, account=updated)

    async def reconcile_due(self, db: AsyncSession) -> SweepResult:
        """Reset every account anchored in a past month.

        Due IDs are paged by ID. Each account is reset on its own, so a failing
        row is recorded in ``failures`` and the sweep moves on. A failure to
        list due accounts aborts the sweep with StoreUnavailableError.
        """
        started = time.monotonic()
        now = self._clock()
        period_start = month_start(now)
        result = SweepResult()
        after_id: Optional[UUID] = None

        try:
            while True:
                due_ids = await self._account_repo.list_due_ids(
                    db, period_start=period_start, after_id=after_id, limit=self._batch_size
                )
                for account_id in due_ids:
                    try:
                        updated = await self._account_repo.reset_if_due(
                            db, account_id=account_id, period_start=period_start, now=now
                        )
                    except Exception as e:
                        logger.error(
                            f"Sweep failed to reset account {account_id}: {e}", exc_info=True
                        )
                        self._metrics.record_reconciliation_failure(ResetTrigger.SWEEP.value)
                        result.failures.append(
                            ReconcileFailure(account_id=account_id, error=str(e))
                        )
                        continue
                    if updated is not None:
                        result.reset_count += 1

                if len(due_ids) < self._batch_size:
                    break
                after_id = due_ids[-1]
        finally:
            self._metrics.observe_sweep(time.monotonic() - started)

        self._metrics.record_resets(ResetTrigger.SWEEP.value, result.reset_count)
        logger.info(
            f"Reconciliation sweep for period {period_start:%Y-%m}: "
            f"{result.reset_count} reset, {result.failed_count} failed"
        )
        return result

    async def _get(self, db: AsyncSession, account_id: UUID) -> Account:
        account = await self._account_repo.get(db, account_id=account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account
