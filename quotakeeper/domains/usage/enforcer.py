"""Quota enforcer: atomic check-and-increment.

The limit check and the increment are a single conditional write in the
store. Reading the account first and writing afterwards would let concurrent
requests all pass the check before any of them writes.
"""

from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.core.logging import logger
from quotakeeper.domains.accounts.repository import AccountRepositoryProtocol
from quotakeeper.domains.usage.billing_cycle import utc_now
from quotakeeper.domains.usage.exceptions import AccountNotFoundError
from quotakeeper.domains.usage.protocols import IncrementResult, QuotaEnforcerProtocol


class QuotaEnforcer(QuotaEnforcerProtocol):
    """Stateless enforcer over the account repository."""

    def __init__(
        self,
        account_repo: AccountRepositoryProtocol,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize with the account repository."""
        self._account_repo = account_repo
        self._clock = clock

    async def try_increment(self, db: AsyncSession, account_id: UUID) -> IncrementResult:
        """Increment if unmetered or below the limit.

        On refusal the account is re-read only to report its current numbers;
        nothing is written.
        """
        updated = await self._account_repo.increment_if_allowed(
            db, account_id=account_id, now=self._clock()
        )
        if updated is not None:
            return IncrementResult(
                accepted=True,
                usage_count=updated.usage_count,
                monthly_limit=updated.monthly_limit,
                tier=updated.tier,
            )

        current = await self._account_repo.get(db, account_id=account_id)
        if current is None:
            raise AccountNotFoundError(account_id)

        logger.warning(
            f"Usage limit exceeded for account {account_id}: "
            f"{current.usage_count}/{current.monthly_limit} ({current.tier.value})"
        )
        return IncrementResult(
            accepted=False,
            usage_count=current.usage_count,
            monthly_limit=current.monthly_limit,
            tier=current.tier,
        )
