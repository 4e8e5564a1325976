"""Account domain types and pure functions. No IO."""

from typing import Optional

from quotakeeper.schemas.account import AccountTier

# Standard monthly allotment per tier. Unmetered accounts carry a sentinel
# that is never compared against.
UNMETERED_LIMIT_SENTINEL = -1

DEFAULT_MONTHLY_LIMITS: dict[AccountTier, int] = {
    AccountTier.METERED_LOW: 5,
    AccountTier.METERED_MID: 100,
    AccountTier.METERED_HIGH: 1000,
    AccountTier.UNMETERED: UNMETERED_LIMIT_SENTINEL,
}


def resolve_monthly_limit(tier: AccountTier, requested: Optional[int] = None) -> int:
    """Pick the limit for a new account: explicit value wins, else the tier default."""
    if tier is AccountTier.UNMETERED:
        return requested if requested is not None else UNMETERED_LIMIT_SENTINEL
    if requested is not None:
        return requested
    return DEFAULT_MONTHLY_LIMITS[tier]


def percent_used(tier: AccountTier, usage_count: int, monthly_limit: int) -> int:
    """Rounded share of the limit consumed; 0 when no numeric limit applies."""
    if not tier.is_metered or monthly_limit <= 0:
        return 0
    return round(usage_count / monthly_limit * 100)
