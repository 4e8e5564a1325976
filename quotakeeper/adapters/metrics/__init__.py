"""Metrics adapters."""

from quotakeeper.adapters.metrics.renderer import PrometheusMetricsRenderer
from quotakeeper.adapters.metrics.usage import FakeUsageMetrics, PrometheusUsageMetrics

__all__ = ["FakeUsageMetrics", "PrometheusMetricsRenderer", "PrometheusUsageMetrics"]
