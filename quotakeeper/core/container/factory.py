"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container. Broken wiring crashes at startup rather than on the first
request.
"""

from prometheus_client import CollectorRegistry

from quotakeeper.adapters.metrics import PrometheusMetricsRenderer, PrometheusUsageMetrics
from quotakeeper.core.config import Settings
from quotakeeper.core.container.container import Container
from quotakeeper.core.logging import logger
from quotakeeper.db.session import get_db_context
from quotakeeper.domains.accounts.repository import AccountRepository
from quotakeeper.domains.usage.enforcer import QuotaEnforcer
from quotakeeper.domains.usage.guard import InMemoryDuplicateRequestGuard
from quotakeeper.domains.usage.reconciler import CycleReconciler
from quotakeeper.domains.usage.scheduler import ReconciliationScheduler
from quotakeeper.domains.usage.service import UsageService


def create_container(settings: Settings) -> Container:
    """Build the container from settings.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use

    Example:
        from quotakeeper.core.config import settings
        from quotakeeper.core.container import create_container

        container = create_container(settings)
    """
    # -----------------------------------------------------------------
    # Metrics (Prometheus adapters, shared registry)
    # -----------------------------------------------------------------
    registry = CollectorRegistry()
    usage_metrics = PrometheusUsageMetrics(registry=registry)
    metrics_renderer = PrometheusMetricsRenderer(registry=registry)

    # -----------------------------------------------------------------
    # Account store
    # -----------------------------------------------------------------
    account_repo = AccountRepository(retry_attempts=settings.STORE_RETRY_ATTEMPTS)

    # -----------------------------------------------------------------
    # Usage domain
    # -----------------------------------------------------------------
    quota_enforcer = QuotaEnforcer(account_repo)
    cycle_reconciler = CycleReconciler(
        account_repo,
        usage_metrics,
        batch_size=settings.RECONCILIATION_BATCH_SIZE,
    )
    duplicate_guard = _create_duplicate_guard(settings)
    reconciliation_scheduler = ReconciliationScheduler(
        reconciler=cycle_reconciler,
        session_factory=get_db_context,
        metrics=usage_metrics,
        interval_seconds=settings.RECONCILIATION_INTERVAL_SECONDS,
    )
    usage_service = UsageService(
        account_repo=account_repo,
        enforcer=quota_enforcer,
        reconciler=cycle_reconciler,
        guard=duplicate_guard,
        scheduler=reconciliation_scheduler,
        metrics=usage_metrics,
        store_timeout_seconds=settings.USAGE_STORE_TIMEOUT_SECONDS,
    )

    return Container(
        account_repo=account_repo,
        quota_enforcer=quota_enforcer,
        cycle_reconciler=cycle_reconciler,
        duplicate_guard=duplicate_guard,
        reconciliation_scheduler=reconciliation_scheduler,
        usage_service=usage_service,
        usage_metrics=usage_metrics,
        metrics_renderer=metrics_renderer,
    )


def _create_duplicate_guard(settings: Settings) -> InMemoryDuplicateRequestGuard:
    """Process-local guard. Replicas each suppress independently."""
    if not settings.is_local:
        logger.info(
            "Duplicate-request suppression is per instance "
            f"(window={settings.USAGE_DEDUPE_WINDOW_SECONDS}s)"
        )
    return InMemoryDuplicateRequestGuard(
        window_seconds=settings.USAGE_DEDUPE_WINDOW_SECONDS,
        expiry_multiplier=settings.USAGE_DEDUPE_EXPIRY_MULTIPLIER,
        max_entries=settings.USAGE_DEDUPE_MAX_ENTRIES,
    )
