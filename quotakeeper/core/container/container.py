"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.

Tests construct it directly with fakes.
"""

from dataclasses import dataclass, replace
from typing import Any

from quotakeeper.core.protocols import MetricsRenderer, UsageMetrics
from quotakeeper.domains.accounts.repository import AccountRepositoryProtocol
from quotakeeper.domains.usage.protocols import (
    CycleReconcilerProtocol,
    DuplicateRequestGuardProtocol,
    QuotaEnforcerProtocol,
    ReconciliationSchedulerProtocol,
    UsageServiceProtocol,
)


@dataclass(frozen=True)
class Container:
    """Immutable container holding all protocol implementations.

    Usage:
        # Production: use the global container built by factory
        from quotakeeper.core.container import container
        await container.usage_service.increment_usage(db, account_id)

        # Testing: construct directly with fakes (see conftest.py
        # for the full test_container fixture)
        test_container = Container(account_repo=FakeAccountRepository(), ...)

        # FastAPI endpoints: use Inject() to pull individual protocols
        from quotakeeper.api.deps import Inject
        async def my_endpoint(usage: UsageServiceProtocol = Inject(UsageServiceProtocol)):
            ...
    """

    # Repository protocols (thin wrappers around crud singletons)
    account_repo: AccountRepositoryProtocol

    # Usage domain components
    quota_enforcer: QuotaEnforcerProtocol
    cycle_reconciler: CycleReconcilerProtocol
    duplicate_guard: DuplicateRequestGuardProtocol
    reconciliation_scheduler: ReconciliationSchedulerProtocol

    # Usage service: facade for the API layer
    usage_service: UsageServiceProtocol

    # Metrics (Prometheus adapters on a shared registry)
    usage_metrics: UsageMetrics
    metrics_renderer: MetricsRenderer

    # -----------------------------------------------------------------
    # Convenience methods
    # -----------------------------------------------------------------

    def replace(self, **changes: Any) -> "Container":
        """Create a new container with some dependencies replaced.

        Useful for partial overrides in tests:

            modified = container.replace(duplicate_guard=FakeDuplicateRequestGuard())

        Args:
            **changes: Dependency name -> new implementation

        Returns:
            New Container with specified dependencies replaced
        """
        return replace(self, **changes)
