"""Account schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AccountTier(str, Enum):
    """Account tier. Only unmetered accounts bypass the monthly limit."""

    METERED_LOW = "metered-low"
    METERED_MID = "metered-mid"
    METERED_HIGH = "metered-high"
    UNMETERED = "unmetered"

    @property
    def is_metered(self) -> bool:
        """Whether limit checks apply to this tier."""
        return self is not AccountTier.UNMETERED


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps read back from stores that drop tzinfo."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AccountCreate(BaseModel):
    """Fields supplied when an account is registered.

    ``monthly_limit`` defaults to the tier's standard allotment.
    """

    id: Optional[UUID] = None
    tier: AccountTier = AccountTier.METERED_LOW
    monthly_limit: Optional[int] = Field(None, ge=0)


class Account(BaseModel):
    """Read model of an account's quota state."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tier: AccountTier
    monthly_limit: int
    usage_count: int = Field(..., ge=0)
    billing_period_start: datetime
    last_reset: Optional[datetime] = None
    version: int = 0
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None

    @field_validator("billing_period_start", "last_reset", "created_at", "modified_at")
    @classmethod
    def _normalize_tz(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def is_metered(self) -> bool:
        """Whether limit checks apply to this account."""
        return self.tier.is_metered
