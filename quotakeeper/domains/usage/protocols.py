"""Usage domain protocols.

QuotaEnforcer: atomic check-and-increment against the account store.
CycleReconciler: billing-cycle reset, single-account and sweep forms.
DuplicateRequestGuard: short-window suppression of repeated attempts.
ReconciliationScheduler: background driver of the sweep.
UsageService: facade exposed to the API and other collaborators.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.domains.usage.types import ResetTrigger
from quotakeeper.schemas.account import Account, AccountTier
from quotakeeper.schemas.reconciliation import SchedulerStatus, SweepResult
from quotakeeper.schemas.usage import IncrementUsageResult, UsageSnapshot


@dataclass(frozen=True)
class IncrementResult:
    """Outcome of one conditional increment."""

    accepted: bool
    usage_count: int
    monthly_limit: int
    tier: AccountTier


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling one account."""

    reset: bool
    account: Account


@runtime_checkable
class QuotaEnforcerProtocol(Protocol):
    """Sole writer of the usage counter during normal traffic."""

    async def try_increment(self, db: AsyncSession, account_id: UUID) -> IncrementResult:
        """Increment if unmetered or below the limit, as one atomic operation.

        Raises AccountNotFoundError if the account does not exist.
        """
        ...


@runtime_checkable
class CycleReconcilerProtocol(Protocol):
    """Resets accounts whose billing anchor is in a past month."""

    async def reconcile(
        self, db: AsyncSession, account_id: UUID, *, trigger: ResetTrigger = ResetTrigger.LAZY
    ) -> ReconcileResult:
        """Reset one account if due; a no-op reporting ``reset=False`` otherwise.

        Raises AccountNotFoundError or ReconciliationError.
        """
        ...

    async def reconcile_due(self, db: AsyncSession) -> SweepResult:
        """Reset every due account, isolating failures per account."""
        ...


@runtime_checkable
class DuplicateRequestGuardProtocol(Protocol):
    """Best-effort suppression of repeated attempts from one account."""

    @property
    def window_seconds(self) -> float:
        """Minimum spacing between two admitted attempts."""
        ...

    async def admit(self, account_id: UUID, now: Optional[float] = None) -> bool:
        """Admit and record the attempt, or reject it if inside the window."""
        ...

    def retry_after(self, account_id: UUID, now: Optional[float] = None) -> float:
        """Seconds until the account may be admitted again; 0 if it may be now."""
        ...


@runtime_checkable
class ReconciliationSchedulerProtocol(Protocol):
    """Periodic driver of ``CycleReconciler.reconcile_due``."""

    def start(self) -> None:
        """Start the background task; the first sweep runs immediately."""
        ...

    async def stop(self) -> None:
        """Halt future firings; an in-flight sweep completes."""
        ...

    async def trigger_now(self) -> SweepResult:
        """Run one sweep immediately, outside the periodic cadence."""
        ...

    def status(self) -> SchedulerStatus:
        """Snapshot of the scheduler's state."""
        ...


@runtime_checkable
class UsageServiceProtocol(Protocol):
    """Usage operations exposed to the API and external collaborators."""

    async def get_usage(self, db: AsyncSession, account_id: UUID) -> UsageSnapshot:
        """Return fresh usage after lazy reconciliation."""
        ...

    async def increment_usage(
        self, db: AsyncSession, account_id: UUID, now: Optional[float] = None
    ) -> IncrementUsageResult:
        """Guard, reconcile, then atomically increment."""
        ...

    async def reset_usage(
        self, db: AsyncSession, account_id: Optional[UUID] = None
    ) -> SweepResult:
        """Force-reset one account, or sweep all due accounts when no ID is given."""
        ...

    async def set_usage(
        self, db: AsyncSession, account_id: UUID, usage_count: int
    ) -> UsageSnapshot:
        """Administrative override of the counter."""
        ...

    def get_scheduler_status(self) -> SchedulerStatus:
        """Status of the reconciliation scheduler."""
        ...

    async def trigger_reconciliation_now(self) -> SweepResult:
        """Run one sweep immediately."""
        ...
