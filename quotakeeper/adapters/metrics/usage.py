"""Usage metrics adapters (Prometheus + Fake).

Prometheus implementation registers its collectors on the shared
CollectorRegistry passed in by the container factory.
"""

from collections import defaultdict

from prometheus_client import CollectorRegistry, Counter, Histogram

from quotakeeper.core.protocols.metrics import UsageMetrics


class PrometheusUsageMetrics(UsageMetrics):
    """Prometheus-backed quota engine metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

        self._increments = Counter(
            "quotakeeper_usage_increments_total",
            "Increment attempts by outcome",
            ["outcome"],
            registry=self._registry,
        )

        self._resets = Counter(
            "quotakeeper_usage_resets_total",
            "Usage counter resets by trigger",
            ["trigger"],
            registry=self._registry,
        )

        self._reconciliation_failures = Counter(
            "quotakeeper_reconciliation_failures_total",
            "Failed billing-cycle reconciliations by trigger",
            ["trigger"],
            registry=self._registry,
        )

        self._sweep_duration = Histogram(
            "quotakeeper_reconciliation_sweep_duration_seconds",
            "Duration of reconciliation sweeps",
            buckets=(0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 60.0, 300.0),
            registry=self._registry,
        )

    # -- UsageMetrics protocol methods --

    def record_increment(self, outcome: str) -> None:
        self._increments.labels(outcome=outcome).inc()

    def record_resets(self, trigger: str, count: int) -> None:
        if count > 0:
            self._resets.labels(trigger=trigger).inc(count)

    def record_reconciliation_failure(self, trigger: str) -> None:
        self._reconciliation_failures.labels(trigger=trigger).inc()

    def observe_sweep(self, duration: float) -> None:
        self._sweep_duration.observe(duration)


# ---------------------------------------------------------------------------
# Fake
# ---------------------------------------------------------------------------


class FakeUsageMetrics(UsageMetrics):
    """In-memory spy implementing the UsageMetrics protocol."""

    def __init__(self) -> None:
        self.increments: dict[str, int] = defaultdict(int)
        self.resets: dict[str, int] = defaultdict(int)
        self.reconciliation_failures: dict[str, int] = defaultdict(int)
        self.sweep_durations: list[float] = []

    def record_increment(self, outcome: str) -> None:
        self.increments[outcome] += 1

    def record_resets(self, trigger: str, count: int) -> None:
        if count > 0:
            self.resets[trigger] += count

    def record_reconciliation_failure(self, trigger: str) -> None:
        self.reconciliation_failures[trigger] += 1

    def observe_sweep(self, duration: float) -> None:
        self.sweep_durations.append(duration)

    # -- test helpers --

    def clear(self) -> None:
        """Reset all recorded state."""
        self.increments.clear()
        self.resets.clear()
        self.reconciliation_failures.clear()
        self.sweep_durations.clear()
