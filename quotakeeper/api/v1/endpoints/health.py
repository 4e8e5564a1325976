"""Health check and metrics endpoints."""

from fastapi import APIRouter, Response

from quotakeeper.api.deps import Inject
from quotakeeper.core.protocols import MetricsRenderer

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Check if the API is healthy.

    Returns:
    --------
        dict: A dictionary containing the status of the API.
    """
    return {"status": "healthy"}


@router.get("/metrics", include_in_schema=False)
async def metrics(renderer: MetricsRenderer = Inject(MetricsRenderer)) -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(content=renderer.generate(), media_type=renderer.content_type)
