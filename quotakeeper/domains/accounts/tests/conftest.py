"""Accounts domain test fixtures and helpers."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from tenacity import wait_none

from quotakeeper.domains.accounts.repository import AccountRepository
from quotakeeper.schemas.account import Account, AccountTier

DEFAULT_ACCOUNT_ID = UUID("00000000-0000-0000-0000-0000000000c1")
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


def _make_account(account_id: UUID = DEFAULT_ACCOUNT_ID, **overrides: Any) -> Account:
    defaults = dict(
        id=account_id,
        tier=AccountTier.METERED_MID,
        monthly_limit=100,
        usage_count=0,
        billing_period_start=datetime(2026, 3, 1, tzinfo=timezone.utc),
        version=0,
    )
    defaults.update(overrides)
    return Account(**defaults)


@pytest.fixture
def db():
    return AsyncMock()


@pytest.fixture
def repo():
    """Repository with no backoff between retries."""
    return AccountRepository(retry_attempts=3, retry_wait=wait_none())
