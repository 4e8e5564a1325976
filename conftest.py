"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and quotakeeper/),
making its fixtures available to centralized tests AND colocated domain tests.
"""

import os

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any quotakeeper module import.
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("RECONCILIATION_ENABLED", "false")
os.environ.setdefault("RUN_ALEMBIC_MIGRATIONS", "false")


# ---------------------------------------------------------------------------
# Shared fake fixtures: individual protocol fakes
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_account_repo():
    """Fake AccountRepository backed by a dict."""
    from quotakeeper.domains.accounts.fakes.repository import FakeAccountRepository

    return FakeAccountRepository()


@pytest.fixture
def fake_usage_metrics():
    """Fake UsageMetrics that records every call."""
    from quotakeeper.adapters.metrics.usage import FakeUsageMetrics

    return FakeUsageMetrics()


@pytest.fixture
def fake_duplicate_guard():
    """Fake DuplicateRequestGuard that admits everything unless told otherwise."""
    from quotakeeper.domains.usage.fakes.guard import FakeDuplicateRequestGuard

    return FakeDuplicateRequestGuard()


@pytest.fixture
def fake_reconciliation_scheduler():
    """Fake ReconciliationScheduler with a canned sweep result."""
    from quotakeeper.domains.usage.fakes.scheduler import FakeReconciliationScheduler

    return FakeReconciliationScheduler()


# ---------------------------------------------------------------------------
# Test container: real usage components over faked edges
# ---------------------------------------------------------------------------


@pytest.fixture
def test_container(
    fake_account_repo,
    fake_usage_metrics,
    fake_duplicate_guard,
    fake_reconciliation_scheduler,
):
    """A Container whose store, guard, scheduler and metrics are fakes.

    The enforcer, reconciler and usage service are the real implementations,
    so API tests exercise the full request path against in-memory state.

    For partial overrides, use container.replace():
        real_guard_container = test_container.replace(
            duplicate_guard=InMemoryDuplicateRequestGuard()
        )
    """
    from prometheus_client import CollectorRegistry

    from quotakeeper.adapters.metrics.renderer import PrometheusMetricsRenderer
    from quotakeeper.core.container import Container
    from quotakeeper.domains.usage.enforcer import QuotaEnforcer
    from quotakeeper.domains.usage.reconciler import CycleReconciler
    from quotakeeper.domains.usage.service import UsageService

    enforcer = QuotaEnforcer(fake_account_repo)
    reconciler = CycleReconciler(fake_account_repo, fake_usage_metrics)
    usage_service = UsageService(
        account_repo=fake_account_repo,
        enforcer=enforcer,
        reconciler=reconciler,
        guard=fake_duplicate_guard,
        scheduler=fake_reconciliation_scheduler,
        metrics=fake_usage_metrics,
    )
    return Container(
        account_repo=fake_account_repo,
        quota_enforcer=enforcer,
        cycle_reconciler=reconciler,
        duplicate_guard=fake_duplicate_guard,
        reconciliation_scheduler=fake_reconciliation_scheduler,
        usage_service=usage_service,
        usage_metrics=fake_usage_metrics,
        metrics_renderer=PrometheusMetricsRenderer(registry=CollectorRegistry()),
    )
