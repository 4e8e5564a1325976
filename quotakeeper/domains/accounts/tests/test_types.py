"""Unit tests for tier defaults and percent_used."""

import pytest

from quotakeeper.domains.accounts.types import (
    DEFAULT_MONTHLY_LIMITS,
    UNMETERED_LIMIT_SENTINEL,
    percent_used,
    resolve_monthly_limit,
)
from quotakeeper.schemas.account import AccountTier


class TestResolveMonthlyLimit:
    @pytest.mark.parametrize(
        "tier,expected",
        [
            (AccountTier.METERED_LOW, 5),
            (AccountTier.METERED_MID, 100),
            (AccountTier.METERED_HIGH, 1000),
            (AccountTier.UNMETERED, UNMETERED_LIMIT_SENTINEL),
        ],
    )
    def test_tier_defaults(self, tier, expected):
        assert resolve_monthly_limit(tier) == expected

    def test_every_tier_has_a_default(self):
        assert set(DEFAULT_MONTHLY_LIMITS) == set(AccountTier)

    def test_explicit_limit_wins(self):
        assert resolve_monthly_limit(AccountTier.METERED_LOW, 42) == 42

    def test_explicit_zero_limit_kept(self):
        assert resolve_monthly_limit(AccountTier.METERED_MID, 0) == 0


class TestPercentUsed:
    def test_rounds_to_integer(self):
        assert percent_used(AccountTier.METERED_MID, 1, 3) == 33
        assert percent_used(AccountTier.METERED_MID, 2, 3) == 67

    def test_full(self):
        assert percent_used(AccountTier.METERED_LOW, 5, 5) == 100

    def test_unmetered_is_zero(self):
        assert percent_used(AccountTier.UNMETERED, 5_000, -1) == 0

    def test_zero_limit_is_zero(self):
        assert percent_used(AccountTier.METERED_LOW, 0, 0) == 0
