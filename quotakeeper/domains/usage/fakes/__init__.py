"""Fake implementations for usage domain testing."""

from quotakeeper.domains.usage.fakes.guard import FakeDuplicateRequestGuard
from quotakeeper.domains.usage.fakes.scheduler import FakeReconciliationScheduler

__all__ = ["FakeDuplicateRequestGuard", "FakeReconciliationScheduler"]
