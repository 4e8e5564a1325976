"""Reconciliation and scheduler schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field


class ReconcileFailure(BaseModel):
    """One account the sweep could not reconcile."""

    account_id: UUID
    error: str


class SweepResult(BaseModel):
    """Outcome of one reconciliation sweep or administrative reset."""

    reset_count: int = 0
    failures: list[ReconcileFailure] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed_count(self) -> int:
        """Number of accounts that failed to reconcile."""
        return len(self.failures)


class SchedulerStatus(BaseModel):
    """Observable state of the reconciliation scheduler."""

    running: bool
    interval_seconds: float
    next_fire_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_reset_count: Optional[int] = None
    last_failed_count: Optional[int] = None
