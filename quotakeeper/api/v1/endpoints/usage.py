"""Usage endpoints.

Authentication is handled in front of this service; the account ID arrives
as a path parameter.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.api.deps import Inject, get_db
from quotakeeper.domains.usage.exceptions import (
    DuplicateRequestSuppressedError,
    QuotaExceededError,
)
from quotakeeper.domains.usage.protocols import UsageServiceProtocol
from quotakeeper.schemas.usage import IncrementOutcome, IncrementUsageResult, UsageSnapshot

router = APIRouter()


@router.get("/{account_id}", response_model=UsageSnapshot)
async def get_usage(
    account_id: UUID,
    db: AsyncSession = Depends(get_db),
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
) -> UsageSnapshot:
    """Get the account's usage in the current billing period.

    Args:
    -----
        account_id: The account to inspect.
        db: The database session.
        usage_service: Usage service.

    Returns:
    --------
        UsageSnapshot: Counter, limit, tier and percentage used.
    """
    return await usage_service.get_usage(db, account_id)


@router.post(
    "/{account_id}/increment",
    response_model=IncrementUsageResult,
    responses={429: {"description": "Usage limit exceeded or request too frequent"}},
)
async def increment_usage(
    account_id: UUID,
    db: AsyncSession = Depends(get_db),
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
) -> IncrementUsageResult:
    """Record one unit of usage for the account.

    Refusals are returned as 429: ``USAGE_LIMIT_EXCEEDED`` when the monthly
    limit is reached, ``REQUEST_TOO_FREQUENT`` (with ``Retry-After``) when the
    same account retried within the suppression window.
    """
    result = await usage_service.increment_usage(db, account_id)

    if result.outcome == IncrementOutcome.QUOTA_EXCEEDED:
        raise QuotaExceededError(
            account_id, limit=result.monthly_limit, current_usage=result.usage_count
        )
    if result.outcome == IncrementOutcome.DUPLICATE_SUPPRESSED:
        raise DuplicateRequestSuppressedError(
            account_id, retry_after=result.retry_after_seconds or 0.0
        )
    return result
