"""Prometheus metrics renderer."""

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from quotakeeper.core.protocols.metrics import MetricsRenderer


class PrometheusMetricsRenderer(MetricsRenderer):
    """Renders a CollectorRegistry in the Prometheus text format."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self._registry = registry

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def generate(self) -> bytes:
        return generate_latest(self._registry)
