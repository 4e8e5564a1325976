"""Fake account repository for testing."""

import asyncio
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.domains.accounts.types import resolve_monthly_limit
from quotakeeper.domains.usage.billing_cycle import month_start
from quotakeeper.schemas.account import Account, AccountCreate


class FakeAccountRepository:
    """In-memory fake for AccountRepositoryProtocol.

    Each write yields to the event loop once and then evaluates its predicate
    and applies its mutation with no await in between, which gives the same
    all-or-nothing behaviour as a conditional UPDATE while still letting
    concurrent callers interleave.

    Usage:
        repo = FakeAccountRepository()
        repo.seed(_make_account(usage_count=3, monthly_limit=5))
        repo.fail_next("increment_if_allowed", StoreUnavailableError("increment_usage"))
    """

    def __init__(self) -> None:
        """Initialize empty in-memory store and call log."""
        self._store: dict[UUID, Account] = {}
        self._calls: list[tuple] = []
        self._failures: dict[str, list[BaseException]] = {}
        self._delays: dict[str, float] = {}

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def seed(self, *accounts: Account) -> None:
        """Populate store with test data."""
        for acc in accounts:
            self._store[acc.id] = acc

    def snapshot(self, account_id: UUID) -> Optional[Account]:
        """Read stored state without recording a call."""
        return self._store.get(account_id)

    def fail_next(self, method: str, exc: BaseException, times: int = 1) -> None:
        """Make the next ``times`` calls to ``method`` raise ``exc``."""
        self._failures.setdefault(method, []).extend([exc] * times)

    def delay(self, method: str, seconds: float) -> None:
        """Make every call to ``method`` sleep before running."""
        self._delays[method] = seconds

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    async def _enter(self, method: str, *args: object) -> None:
        self._calls.append((method, *args))
        await asyncio.sleep(self._delays.get(method, 0))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _write(self, account: Account, **changes: object) -> Account:
        updated = account.model_copy(
            update={**changes, "version": account.version + 1}
        )
        self._store[account.id] = updated
        return updated

    # ------------------------------------------------------------------
    # AccountRepositoryProtocol
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, *, account_id: UUID) -> Optional[Account]:
        """Get an account by ID."""
        await self._enter("get", account_id)
        return self._store.get(account_id)

    async def create(self, db: AsyncSession, *, obj_in: AccountCreate, now: datetime) -> Account:
        """Register a new account (fake)."""
        await self._enter("create", obj_in)
        acc = Account(
            id=obj_in.id or uuid4(),
            tier=obj_in.tier,
            monthly_limit=resolve_monthly_limit(obj_in.tier, obj_in.monthly_limit),
            usage_count=0,
            billing_period_start=month_start(now),
            last_reset=None,
            version=0,
            created_at=now,
            modified_at=now,
        )
        self._store[acc.id] = acc
        return acc

    async def increment_if_allowed(
        self, db: AsyncSession, *, account_id: UUID, now: datetime
    ) -> Optional[Account]:
        """Add one if unmetered or below the limit."""
        await self._enter("increment_if_allowed", account_id)
        acc = self._store.get(account_id)
        if acc is None:
            return None
        if acc.is_metered and acc.usage_count >= acc.monthly_limit:
            return None
        return self._write(acc, usage_count=acc.usage_count + 1, modified_at=now)

    async def reset_if_due(
        self, db: AsyncSession, *, account_id: UUID, period_start: datetime, now: datetime
    ) -> Optional[Account]:
        """Reset if anchored before ``period_start``."""
        await self._enter("reset_if_due", account_id, period_start)
        acc = self._store.get(account_id)
        if acc is None or not acc.billing_period_start < period_start:
            return None
        return self._write(
            acc,
            usage_count=0,
            billing_period_start=period_start,
            last_reset=now,
            modified_at=now,
        )

    async def force_reset(
        self, db: AsyncSession, *, account_id: UUID, period_start: datetime, now: datetime
    ) -> Optional[Account]:
        """Unconditionally reset."""
        await self._enter("force_reset", account_id, period_start)
        acc = self._store.get(account_id)
        if acc is None:
            return None
        return self._write(
            acc,
            usage_count=0,
            billing_period_start=period_start,
            last_reset=now,
            modified_at=now,
        )

    async def set_usage(
        self, db: AsyncSession, *, account_id: UUID, usage_count: int, now: datetime
    ) -> Optional[Account]:
        """Overwrite the counter within the limit."""
        await self._enter("set_usage", account_id, usage_count)
        acc = self._store.get(account_id)
        if acc is None:
            return None
        if acc.is_metered and usage_count > acc.monthly_limit:
            return None
        return self._write(acc, usage_count=usage_count, modified_at=now)

    async def list_due_ids(
        self,
        db: AsyncSession,
        *,
        period_start: datetime,
        after_id: Optional[UUID] = None,
        limit: int = 500,
    ) -> list[UUID]:
        """Page through IDs of accounts anchored before ``period_start``."""
        await self._enter("list_due_ids", period_start, after_id, limit)
        due = sorted(
            (acc.id for acc in self._store.values() if acc.billing_period_start < period_start),
            key=str,
        )
        if after_id is not None:
            due = [i for i in due if str(i) > str(after_id)]
        return due[:limit]
