"""Metrics protocols for dependency injection."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class UsageMetrics(Protocol):
    """Protocol for quota-engine instrumentation."""

    def record_increment(self, outcome: str) -> None:
        """Count one increment attempt by outcome (accepted, quota_exceeded, ...)."""
        ...

    def record_resets(self, trigger: str, count: int) -> None:
        """Count counter resets by trigger (lazy, sweep, admin)."""
        ...

    def record_reconciliation_failure(self, trigger: str) -> None:
        """Count one failed reconciliation by trigger."""
        ...

    def observe_sweep(self, duration: float) -> None:
        """Record the wall-clock duration of one reconciliation sweep."""
        ...


@runtime_checkable
class MetricsRenderer(Protocol):
    """Serializes collected metrics for scraping."""

    @property
    def content_type(self) -> str:
        """Content type of the rendered payload."""
        ...

    def generate(self) -> bytes:
        """Render the current metrics."""
        ...
