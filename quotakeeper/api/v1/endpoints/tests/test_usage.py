"""API tests for usage endpoints.

Drives the real usage service over a fake account store injected via DI.
Verifies routing, serialization, and the 404/429/503 mappings in middleware.
"""

from datetime import datetime, timezone
from uuid import UUID

import pytest

from quotakeeper.core.exceptions import StoreUnavailableError
from quotakeeper.domains.usage.billing_cycle import month_start, utc_now
from quotakeeper.schemas.account import Account, AccountTier

ACCOUNT_ID = UUID("00000000-0000-0000-0000-00000000d001")


def _make_account(**overrides) -> Account:
    defaults = dict(
        id=ACCOUNT_ID,
        tier=AccountTier.METERED_LOW,
        monthly_limit=5,
        usage_count=0,
        billing_period_start=month_start(utc_now()),
        version=0,
    )
    defaults.update(overrides)
    return Account(**defaults)


class TestGetUsage:
    """Tests for GET /usage/{account_id}."""

    @pytest.mark.asyncio
    async def test_returns_snapshot(self, client, fake_account_repo):
        fake_account_repo.seed(_make_account(usage_count=3))

        response = await client.get(f"/usage/{ACCOUNT_ID}")

        assert response.status_code == 200
        data = response.json()
        assert data["usage_count"] == 3
        assert data["monthly_limit"] == 5
        assert data["tier"] == "metered-low"
        assert data["percent_used"] == 60

    @pytest.mark.asyncio
    async def test_stale_period_reads_as_reset(self, client, fake_account_repo):
        fake_account_repo.seed(
            _make_account(
                usage_count=5, billing_period_start=datetime(2020, 1, 1, tzinfo=timezone.utc)
            )
        )

        response = await client.get(f"/usage/{ACCOUNT_ID}")

        assert response.status_code == 200
        assert response.json()["usage_count"] == 0

    @pytest.mark.asyncio
    async def test_missing_account_returns_404(self, client):
        response = await client.get(f"/usage/{ACCOUNT_ID}")

        assert response.status_code == 404
        assert str(ACCOUNT_ID) in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_invalid_uuid_returns_422(self, client):
        response = await client.get("/usage/not-a-uuid")

        assert response.status_code == 422


class TestIncrementUsage:
    """Tests for POST /usage/{account_id}/increment."""

    @pytest.mark.asyncio
    async def test_accepted(self, client, fake_account_repo):
        fake_account_repo.seed(_make_account(usage_count=1))

        response = await client.post(f"/usage/{ACCOUNT_ID}/increment")

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "accepted"
        assert data["usage_count"] == 2
        assert data["was_reset"] is False
        assert fake_account_repo.snapshot(ACCOUNT_ID).usage_count == 2

    @pytest.mark.asyncio
    async def test_quota_exceeded_returns_429(self, client, fake_account_repo):
        fake_account_repo.seed(_make_account(usage_count=5))

        response = await client.post(f"/usage/{ACCOUNT_ID}/increment")

        assert response.status_code == 429
        data = response.json()
        assert data["code"] == "USAGE_LIMIT_EXCEEDED"
        assert data["current_usage"] == 5
        assert data["limit"] == 5
        assert "Retry-After" not in response.headers

    @pytest.mark.asyncio
    async def test_duplicate_returns_429_with_retry_after(
        self, client, fake_account_repo, fake_duplicate_guard
    ):
        fake_account_repo.seed(_make_account(usage_count=1))
        fake_duplicate_guard.reject(ACCOUNT_ID)

        response = await client.post(f"/usage/{ACCOUNT_ID}/increment")

        assert response.status_code == 429
        assert response.json()["code"] == "REQUEST_TOO_FREQUENT"
        assert response.headers["Retry-After"] == "5"
        assert fake_account_repo.snapshot(ACCOUNT_ID).usage_count == 1

    @pytest.mark.asyncio
    async def test_unmetered_never_429(self, client, fake_account_repo):
        fake_account_repo.seed(
            _make_account(tier=AccountTier.UNMETERED, monthly_limit=-1, usage_count=1_000_000)
        )

        response = await client.post(f"/usage/{ACCOUNT_ID}/increment")

        assert response.status_code == 200
        assert response.json()["usage_count"] == 1_000_001

    @pytest.mark.asyncio
    async def test_missing_account_returns_404(self, client):
        response = await client.post(f"/usage/{ACCOUNT_ID}/increment")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_store_unavailable_returns_503(self, client, fake_account_repo):
        fake_account_repo.seed(_make_account(usage_count=1))
        fake_account_repo.fail_next(
            "increment_if_allowed", StoreUnavailableError("increment_usage", "connection refused")
        )

        response = await client.post(f"/usage/{ACCOUNT_ID}/increment")

        assert response.status_code == 503
        assert response.json()["code"] == "STORE_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_response_carries_request_id(self, client, fake_account_repo):
        fake_account_repo.seed(_make_account())

        response = await client.post(
            f"/usage/{ACCOUNT_ID}/increment", headers={"X-Request-ID": "req-123"}
        )

        assert response.headers["X-Request-ID"] == "req-123"
