"""Usage domain test fixtures and helpers.

Follows the pattern from domains/accounts/tests/.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from quotakeeper.adapters.metrics.usage import FakeUsageMetrics
from quotakeeper.domains.accounts.fakes.repository import FakeAccountRepository
from quotakeeper.domains.usage.enforcer import QuotaEnforcer
from quotakeeper.domains.usage.fakes.guard import FakeDuplicateRequestGuard
from quotakeeper.domains.usage.fakes.scheduler import FakeReconciliationScheduler
from quotakeeper.domains.usage.reconciler import CycleReconciler
from quotakeeper.domains.usage.service import UsageService
from quotakeeper.schemas.account import Account, AccountTier

DEFAULT_ACCOUNT_ID = UUID("00000000-0000-0000-0000-0000000000a1")

# Mid-March; the "current" billing period in these tests starts 2026-03-01.
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
CURRENT_PERIOD = datetime(2026, 3, 1, tzinfo=timezone.utc)
PREVIOUS_PERIOD = datetime(2026, 2, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FixedClock:
    """Settable stand-in for ``utc_now``."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _make_account(
    account_id: UUID = DEFAULT_ACCOUNT_ID,
    *,
    tier: AccountTier = AccountTier.METERED_LOW,
    usage_count: int = 0,
    monthly_limit: int = 5,
    billing_period_start: datetime = CURRENT_PERIOD,
    **overrides: Any,
) -> Account:
    defaults = dict(
        id=account_id,
        tier=tier,
        monthly_limit=monthly_limit,
        usage_count=usage_count,
        billing_period_start=billing_period_start,
        last_reset=None,
        version=0,
        created_at=PREVIOUS_PERIOD,
        modified_at=PREVIOUS_PERIOD,
    )
    defaults.update(overrides)
    return Account(**defaults)


def _make_service(
    *,
    account_repo: Optional[FakeAccountRepository] = None,
    guard: Optional[FakeDuplicateRequestGuard] = None,
    scheduler: Optional[FakeReconciliationScheduler] = None,
    metrics: Optional[FakeUsageMetrics] = None,
    clock: Optional[FixedClock] = None,
    store_timeout_seconds: float = 10.0,
) -> tuple[UsageService, FakeAccountRepository, FakeUsageMetrics]:
    """Build a UsageService wired to fakes. Returns (service, repo, metrics)."""
    repo = account_repo or FakeAccountRepository()
    m = metrics or FakeUsageMetrics()
    c = clock or FixedClock()
    service = UsageService(
        account_repo=repo,
        enforcer=QuotaEnforcer(repo, clock=c),
        reconciler=CycleReconciler(repo, m, clock=c),
        guard=guard or FakeDuplicateRequestGuard(),
        scheduler=scheduler or FakeReconciliationScheduler(),
        metrics=m,
        store_timeout_seconds=store_timeout_seconds,
        clock=c,
    )
    return service, repo, m


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    return AsyncMock()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def account_repo():
    return FakeAccountRepository()


@pytest.fixture
def metrics():
    return FakeUsageMetrics()


@pytest.fixture
def new_account_id():
    return uuid4()
