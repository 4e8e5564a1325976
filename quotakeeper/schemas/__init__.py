"""Schemas for the quotakeeper package."""

from quotakeeper.schemas.account import Account, AccountCreate, AccountTier
from quotakeeper.schemas.reconciliation import (
    ReconcileFailure,
    SchedulerStatus,
    SweepResult,
)
from quotakeeper.schemas.usage import (
    IncrementOutcome,
    IncrementUsageResult,
    SetUsageRequest,
    UsageSnapshot,
)

__all__ = [
    "Account",
    "AccountCreate",
    "AccountTier",
    "IncrementOutcome",
    "IncrementUsageResult",
    "ReconcileFailure",
    "SchedulerStatus",
    "SetUsageRequest",
    "SweepResult",
    "UsageSnapshot",
]
