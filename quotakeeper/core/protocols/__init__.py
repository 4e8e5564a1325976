"""Core protocols."""

from quotakeeper.core.protocols.metrics import MetricsRenderer, UsageMetrics

__all__ = ["MetricsRenderer", "UsageMetrics"]
