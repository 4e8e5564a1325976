"""Account store repository wrapping crud.account.

Idempotent operations (reads, conditional resets, sweep listing) are retried on
transient database errors with exponential backoff. The conditional increment
is attempted exactly once: a retried increment whose first attempt actually
committed would double-charge the account.

The session is rolled back after any failed statement, transient or not, so
the caller can keep using it.
"""

from datetime import datetime
from typing import Awaitable, Callable, Optional, Protocol, TypeVar
from uuid import UUID

from sqlalchemy.exc import (
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from quotakeeper import crud
from quotakeeper.core.exceptions import StoreUnavailableError
from quotakeeper.core.logging import logger
from quotakeeper.domains.accounts.types import resolve_monthly_limit
from quotakeeper.domains.usage.billing_cycle import month_start
from quotakeeper.schemas.account import Account, AccountCreate

T = TypeVar("T")

TRANSIENT_STORE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    ConnectionError,
)

# Any failed statement leaves the transaction unusable on Postgres until rolled back.
_ROLLBACK_ERRORS: tuple[type[BaseException], ...] = (SQLAlchemyError, ConnectionError)


class AccountRepositoryProtocol(Protocol):
    """Data access for account quota state."""

    async def get(self, db: AsyncSession, *, account_id: UUID) -> Optional[Account]:
        """Get an account by ID."""
        ...

    async def create(self, db: AsyncSession, *, obj_in: AccountCreate, now: datetime) -> Account:
        """Register a new account with a zero counter anchored at the creation month."""
        ...

    async def increment_if_allowed(
        self, db: AsyncSession, *, account_id: UUID, now: datetime
    ) -> Optional[Account]:
        """Atomically add one if unmetered or below the limit; None if refused or missing."""
        ...

    async def reset_if_due(
        self, db: AsyncSession, *, account_id: UUID, period_start: datetime, now: datetime
    ) -> Optional[Account]:
        """Atomically reset if anchored before ``period_start``; None if already current."""
        ...

    async def force_reset(
        self, db: AsyncSession, *, account_id: UUID, period_start: datetime, now: datetime
    ) -> Optional[Account]:
        """Unconditionally reset; None if missing."""
        ...

    async def set_usage(
        self, db: AsyncSession, *, account_id: UUID, usage_count: int, now: datetime
    ) -> Optional[Account]:
        """Overwrite the counter within the limit; None if missing or refused."""
        ...

    async def list_due_ids(
        self,
        db: AsyncSession,
        *,
        period_start: datetime,
        after_id: Optional[UUID] = None,
        limit: int = 500,
    ) -> list[UUID]:
        """Page through IDs of accounts anchored before ``period_start``."""
        ...


class AccountRepository(AccountRepositoryProtocol):
    """Delegates to the crud.account singleton with store-failure handling."""

    def __init__(
        self,
        retry_attempts: int = 3,
        retry_wait: Optional[wait_base] = None,
    ) -> None:
        """Initialize with the retry budget for idempotent operations."""
        self._retry_attempts = retry_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.1, max=2)

    async def get(self, db: AsyncSession, *, account_id: UUID) -> Optional[Account]:
        """Get an account by ID."""
        return await self._with_retry(
            "get_account", db, lambda: crud.account.get(db, account_id=account_id)
        )

    async def create(self, db: AsyncSession, *, obj_in: AccountCreate, now: datetime) -> Account:
        """Register a new account with a zero counter anchored at the creation month."""
        return await self._once(
            "create_account",
            db,
            lambda: crud.account.create(
                db,
                obj_in=obj_in,
                monthly_limit=resolve_monthly_limit(obj_in.tier, obj_in.monthly_limit),
                billing_period_start=month_start(now),
                now=now,
            ),
        )

    async def increment_if_allowed(
        self, db: AsyncSession, *, account_id: UUID, now: datetime
    ) -> Optional[Account]:
        """Atomically add one if unmetered or below the limit; None if refused or missing."""
        return await self._once(
            "increment_usage",
            db,
            lambda: crud.account.increment_if_allowed(db, account_id=account_id, now=now),
        )

    async def reset_if_due(
        self, db: AsyncSession, *, account_id: UUID, period_start: datetime, now: datetime
    ) -> Optional[Account]:
        """Atomically reset if anchored before ``period_start``; None if already current."""
        return await self._with_retry(
            "reset_if_due",
            db,
            lambda: crud.account.reset_if_due(
                db, account_id=account_id, period_start=period_start, now=now
            ),
        )

    async def force_reset(
        self, db: AsyncSession, *, account_id: UUID, period_start: datetime, now: datetime
    ) -> Optional[Account]:
        """Unconditionally reset; None if missing."""
        return await self._with_retry(
            "force_reset",
            db,
            lambda: crud.account.force_reset(
                db, account_id=account_id, period_start=period_start, now=now
            ),
        )

    async def set_usage(
        self, db: AsyncSession, *, account_id: UUID, usage_count: int, now: datetime
    ) -> Optional[Account]:
        """Overwrite the counter within the limit; None if missing or refused."""
        return await self._with_retry(
            "set_usage",
            db,
            lambda: crud.account.set_usage(
                db, account_id=account_id, usage_count=usage_count, now=now
            ),
        )

    async def list_due_ids(
        self,
        db: AsyncSession,
        *,
        period_start: datetime,
        after_id: Optional[UUID] = None,
        limit: int = 500,
    ) -> list[UUID]:
        """Page through IDs of accounts anchored before ``period_start``."""
        return await self._with_retry(
            "list_due_accounts",
            db,
            lambda: crud.account.list_due_ids(
                db, period_start=period_start, after_id=after_id, limit=limit
            ),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _rollback(self, db: AsyncSession, operation: str) -> None:
        try:
            await db.rollback()
        except Exception:
            # Connection is already gone; the next attempt checks out a fresh one.
            logger.debug(f"[AccountRepository] Rollback after failed {operation} also failed")

    async def _once(
        self, operation: str, db: AsyncSession, call: Callable[[], Awaitable[T]]
    ) -> T:
        try:
            return await call()
        except _ROLLBACK_ERRORS as e:
            await self._rollback(db, operation)
            if not isinstance(e, TRANSIENT_STORE_ERRORS):
                raise
            logger.warning(f"[AccountRepository] {operation} failed: {e}")
            raise StoreUnavailableError(operation, str(e)) from e

    async def _with_retry(
        self, operation: str, db: AsyncSession, call: Callable[[], Awaitable[T]]
    ) -> T:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=self._retry_wait,
                retry=retry_if_exception_type(TRANSIENT_STORE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    try:
                        return await call()
                    except _ROLLBACK_ERRORS:
                        await self._rollback(db, operation)
                        raise
        except TRANSIENT_STORE_ERRORS as e:
            logger.warning(
                f"[AccountRepository] {operation} failed after "
                f"{self._retry_attempts} attempt(s): {e}"
            )
            raise StoreUnavailableError(operation, str(e)) from e
