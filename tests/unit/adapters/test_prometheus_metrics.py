"""Unit tests for the Prometheus usage metrics adapter and renderer."""

from prometheus_client import CollectorRegistry

from quotakeeper.adapters.metrics import PrometheusMetricsRenderer, PrometheusUsageMetrics


def _build():
    registry = CollectorRegistry()
    return PrometheusUsageMetrics(registry=registry), registry


class TestPrometheusUsageMetrics:
    def test_increment_outcomes(self):
        metrics, registry = _build()

        metrics.record_increment("accepted")
        metrics.record_increment("accepted")
        metrics.record_increment("quota_exceeded")

        value = registry.get_sample_value
        assert value("quotakeeper_usage_increments_total", {"outcome": "accepted"}) == 2
        assert value("quotakeeper_usage_increments_total", {"outcome": "quota_exceeded"}) == 1

    def test_resets_by_trigger(self):
        metrics, registry = _build()

        metrics.record_resets("sweep", 12)
        metrics.record_resets("lazy", 1)

        value = registry.get_sample_value
        assert value("quotakeeper_usage_resets_total", {"trigger": "sweep"}) == 12
        assert value("quotakeeper_usage_resets_total", {"trigger": "lazy"}) == 1

    def test_zero_resets_create_no_series(self):
        metrics, registry = _build()

        metrics.record_resets("sweep", 0)

        value = registry.get_sample_value
        assert value("quotakeeper_usage_resets_total", {"trigger": "sweep"}) is None

    def test_failures_and_sweep_duration(self):
        metrics, registry = _build()

        metrics.record_reconciliation_failure("lazy")
        metrics.observe_sweep(0.3)

        value = registry.get_sample_value
        assert value("quotakeeper_reconciliation_failures_total", {"trigger": "lazy"}) == 1
        assert value("quotakeeper_reconciliation_sweep_duration_seconds_count") == 1
        assert value("quotakeeper_reconciliation_sweep_duration_seconds_sum") == 0.3


class TestRenderer:
    def test_renders_text_exposition(self):
        metrics, registry = _build()
        renderer = PrometheusMetricsRenderer(registry=registry)

        metrics.record_increment("duplicate_suppressed")
        body = renderer.generate().decode()

        assert renderer.content_type.startswith("text/plain")
        assert "# TYPE quotakeeper_usage_increments_total counter" in body
        assert 'quotakeeper_usage_increments_total{outcome="duplicate_suppressed"} 1.0' in body
