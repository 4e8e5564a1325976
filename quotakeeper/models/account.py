"""Account model: the persisted quota state of one billable account."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from quotakeeper.models._base import Base


class Account(Base):
    """Account model.

    Written only through conditional single-statement updates in
    ``crud.crud_account``; ``version`` is bumped by every engine write.
    """

    __tablename__ = "account"

    tier: Mapped[str] = mapped_column(String(32), nullable=False)
    monthly_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    billing_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_reset: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_account_usage_count_non_negative"),
        CheckConstraint(
            "tier IN ('metered-low', 'metered-mid', 'metered-high', 'unmetered')",
            name="ck_account_tier",
        ),
        Index("idx_account_billing_period_start", "billing_period_start"),
    )
