"""Usage schemas: results returned by the usage domain and the usage API."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from quotakeeper.schemas.account import AccountTier


class IncrementOutcome(str, Enum):
    """How an increment attempt was resolved."""

    ACCEPTED = "accepted"
    QUOTA_EXCEEDED = "quota_exceeded"
    DUPLICATE_SUPPRESSED = "duplicate_suppressed"


class UsageSnapshot(BaseModel):
    """Current usage of one account, after lazy reconciliation."""

    usage_count: int
    monthly_limit: int
    tier: AccountTier
    percent_used: int = Field(..., description="0 for unmetered accounts")
    billing_period_start: datetime


class IncrementUsageResult(BaseModel):
    """Structured result of ``increment_usage``.

    ``usage_count``/``monthly_limit``/``tier`` are the store's fresh values and
    are None only for duplicate-suppressed attempts, which never reach the store.
    """

    outcome: IncrementOutcome
    usage_count: Optional[int] = None
    monthly_limit: Optional[int] = None
    tier: Optional[AccountTier] = None
    was_reset: bool = False
    retry_after_seconds: Optional[float] = None

    @property
    def accepted(self) -> bool:
        """Whether the counter was incremented."""
        return self.outcome == IncrementOutcome.ACCEPTED


class SetUsageRequest(BaseModel):
    """Administrative override of an account's counter."""

    usage_count: int = Field(..., ge=0)
