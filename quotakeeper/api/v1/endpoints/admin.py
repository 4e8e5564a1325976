"""Admin-only usage endpoints.

Operator authorization is enforced upstream of this service.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quotakeeper.api.deps import Inject, get_db, get_request_logger
from quotakeeper.core.logging import ContextualLogger
from quotakeeper.domains.usage.protocols import UsageServiceProtocol
from quotakeeper.schemas.reconciliation import SchedulerStatus, SweepResult
from quotakeeper.schemas.usage import SetUsageRequest, UsageSnapshot

router = APIRouter()


@router.post("/accounts/{account_id}/reset-usage", response_model=SweepResult)
async def reset_account_usage(
    account_id: UUID,
    db: AsyncSession = Depends(get_db),
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
    log: ContextualLogger = Depends(get_request_logger),
) -> SweepResult:
    """Zero one account's counter and re-anchor it to the current month."""
    log.info(f"Admin requested usage reset for account {account_id}")
    return await usage_service.reset_usage(db, account_id)


@router.post("/reset-all-usage", response_model=SweepResult)
async def reset_all_usage(
    db: AsyncSession = Depends(get_db),
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
    log: ContextualLogger = Depends(get_request_logger),
) -> SweepResult:
    """Reset every account whose billing period has ended."""
    log.info("Admin requested reset of all due accounts")
    return await usage_service.reset_usage(db)


@router.put("/accounts/{account_id}/usage", response_model=UsageSnapshot)
async def set_account_usage(
    account_id: UUID,
    body: SetUsageRequest,
    db: AsyncSession = Depends(get_db),
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
    log: ContextualLogger = Depends(get_request_logger),
) -> UsageSnapshot:
    """Overwrite an account's counter for the current period."""
    log.info(f"Admin set usage for account {account_id} to {body.usage_count}")
    return await usage_service.set_usage(db, account_id, body.usage_count)


@router.get("/scheduler/status", response_model=SchedulerStatus)
async def scheduler_status(
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
) -> SchedulerStatus:
    """Report the reconciliation scheduler's state."""
    return usage_service.get_scheduler_status()


@router.post("/scheduler/trigger", response_model=SweepResult)
async def trigger_reconciliation(
    usage_service: UsageServiceProtocol = Inject(UsageServiceProtocol),
    log: ContextualLogger = Depends(get_request_logger),
) -> SweepResult:
    """Run a reconciliation sweep now, outside the periodic schedule."""
    log.info("Admin triggered reconciliation sweep")
    return await usage_service.trigger_reconciliation_now()
