"""CRUD operations for the Account model.

Every write is a single conditional statement with ``RETURNING`` so the
predicate check and the mutation are one indivisible operation in the
database. Reads and writes go through the table's columns rather than ORM
instances so that results never come from a stale identity map.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.models.account import Account
from quotakeeper.schemas.account import Account as AccountSchema
from quotakeeper.schemas.account import AccountCreate, AccountTier

_table = Account.__table__
_columns = tuple(_table.c)


def _to_schema(row: Optional[Any]) -> Optional[AccountSchema]:
    if row is None:
        return None
    return AccountSchema.model_validate(dict(row))


class CRUDAccount:
    """CRUD operations for Account."""

    async def get(self, db: AsyncSession, *, account_id: UUID) -> Optional[AccountSchema]:
        """Get an account by ID.

        Args:
            db: Database session
            account_id: Account ID

        Returns:
            The account or None
        """
        result = await db.execute(select(*_columns).where(_table.c.id == account_id))
        return _to_schema(result.mappings().one_or_none())

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: AccountCreate,
        monthly_limit: int,
        billing_period_start: datetime,
        now: datetime,
    ) -> AccountSchema:
        """Insert a new account with a zero counter.

        Args:
            db: Database session
            obj_in: Registration fields
            monthly_limit: Resolved monthly limit
            billing_period_start: First instant of the creation month
            now: Creation timestamp

        Returns:
            The created account
        """
        stmt = (
            insert(_table)
            .values(
                id=obj_in.id or uuid4(),
                tier=obj_in.tier.value,
                monthly_limit=monthly_limit,
                usage_count=0,
                billing_period_start=billing_period_start,
                last_reset=None,
                version=0,
                created_at=now,
                modified_at=now,
            )
            .returning(*_columns)
        )
        result = await db.execute(stmt)
        row = result.mappings().one()
        await db.commit()
        return AccountSchema.model_validate(dict(row))

    async def increment_if_allowed(
        self, db: AsyncSession, *, account_id: UUID, now: datetime
    ) -> Optional[AccountSchema]:
        """Add one to the counter if the account is unmetered or has room left.

        Args:
            db: Database session
            account_id: Account ID
            now: Write timestamp

        Returns:
            The updated account, or None when the predicate failed or the
            account does not exist
        """
        stmt = (
            update(_table)
            .where(
                _table.c.id == account_id,
                or_(
                    _table.c.tier == AccountTier.UNMETERED.value,
                    _table.c.usage_count < _table.c.monthly_limit,
                ),
            )
            .values(
                usage_count=_table.c.usage_count + 1,
                version=_table.c.version + 1,
                modified_at=now,
            )
            .returning(*_columns)
        )
        result = await db.execute(stmt)
        row = result.mappings().one_or_none()
        await db.commit()
        return _to_schema(row)

    async def reset_if_due(
        self,
        db: AsyncSession,
        *,
        account_id: UUID,
        period_start: datetime,
        now: datetime,
    ) -> Optional[AccountSchema]:
        """Zero the counter and advance the anchor if the account is in an older period.

        Args:
            db: Database session
            account_id: Account ID
            period_start: First instant of the current billing month
            now: Reset timestamp

        Returns:
            The reset account, or None if it was already current (or missing)
        """
        stmt = (
            update(_table)
            .where(
                _table.c.id == account_id,
                _table.c.billing_period_start < period_start,
            )
            .values(
                usage_count=0,
                billing_period_start=period_start,
                last_reset=now,
                version=_table.c.version + 1,
                modified_at=now,
            )
            .returning(*_columns)
        )
        result = await db.execute(stmt)
        row = result.mappings().one_or_none()
        await db.commit()
        return _to_schema(row)

    async def force_reset(
        self,
        db: AsyncSession,
        *,
        account_id: UUID,
        period_start: datetime,
        now: datetime,
    ) -> Optional[AccountSchema]:
        """Unconditionally zero the counter and re-anchor to the current month."""
        stmt = (
            update(_table)
            .where(_table.c.id == account_id)
            .values(
                usage_count=0,
                billing_period_start=period_start,
                last_reset=now,
                version=_table.c.version + 1,
                modified_at=now,
            )
            .returning(*_columns)
        )
        result = await db.execute(stmt)
        row = result.mappings().one_or_none()
        await db.commit()
        return _to_schema(row)

    async def set_usage(
        self,
        db: AsyncSession,
        *,
        account_id: UUID,
        usage_count: int,
        now: datetime,
    ) -> Optional[AccountSchema]:
        """Overwrite the counter. Metered accounts refuse values above their limit.

        Returns:
            The updated account, or None when the account is missing or the
            value would exceed a metered limit
        """
        stmt = (
            update(_table)
            .where(
                _table.c.id == account_id,
                or_(
                    _table.c.tier == AccountTier.UNMETERED.value,
                    _table.c.monthly_limit >= usage_count,
                ),
            )
            .values(
                usage_count=usage_count,
                version=_table.c.version + 1,
                modified_at=now,
            )
            .returning(*_columns)
        )
        result = await db.execute(stmt)
        row = result.mappings().one_or_none()
        await db.commit()
        return _to_schema(row)

    async def list_due_ids(
        self,
        db: AsyncSession,
        *,
        period_start: datetime,
        after_id: Optional[UUID] = None,
        limit: int = 500,
    ) -> list[UUID]:
        """List IDs of accounts anchored before ``period_start``, keyset-paginated by ID.

        Args:
            db: Database session
            period_start: First instant of the current billing month
            after_id: Return only IDs greater than this one
            limit: Page size

        Returns:
            Up to ``limit`` account IDs in ascending order
        """
        query = select(_table.c.id).where(_table.c.billing_period_start < period_start)
        if after_id is not None:
            query = query.where(_table.c.id > after_id)
        query = query.order_by(_table.c.id).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())


# Create instance
account = CRUDAccount()
