"""Middleware and exception handlers for the FastAPI application."""

import math
import time
import traceback
import uuid

from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from quotakeeper.core.config import settings
from quotakeeper.core.exceptions import (
    BadRequestError,
    NotFoundException,
    QuotaKeeperException,
    StoreUnavailableError,
)
from quotakeeper.core.logging import logger
from quotakeeper.domains.usage.exceptions import (
    DuplicateRequestSuppressedError,
    QuotaExceededError,
)

REQUEST_ID_HEADER = "X-Request-ID"


async def add_request_id(request: Request, call_next: callable) -> Response:
    """Attach a request ID to the request state and echo it on the response.

    An incoming ``X-Request-ID`` header is reused so IDs can be correlated
    across services.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def log_requests(request: Request, call_next: callable) -> Response:
    """Log every handled request with its duration and status code."""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.with_context(request_id=getattr(request.state, "request_id", None)).info(
        f"Handled request {request.method} {request.url.path} in {duration:.3f}s. "
        f"Response code: {response.status_code}"
    )
    return response


async def exception_logging_middleware(request: Request, call_next: callable) -> Response:
    """Log unhandled exceptions and turn them into a 500 response."""
    try:
        return await call_next(request)
    except Exception as exc:
        logger.with_context(request_id=getattr(request.state, "request_id", None)).error(
            f"Unhandled exception: {exc}\n{traceback.format_exc()}"
        )
        content = {"detail": f"Internal Server Error: {exc.__class__.__name__}"}
        if settings.is_local:
            content["trace"] = traceback.format_exc()
        return JSONResponse(status_code=500, content=content)


# Exception handlers
async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """Return a 422 with one ``{location: message}`` entry per validation error."""
    errors = [
        {".".join(str(part) for part in err.get("loc", ())): err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.error(f"Validation error: {errors}")
    return JSONResponse(status_code=422, content={"errors": errors})


async def not_found_exception_handler(request: Request, exc: NotFoundException) -> JSONResponse:
    """Exception handler for NotFoundException.

    Returns:
    -------
        JSONResponse: A 404 Not Found status response that details the error message.

    """
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def bad_request_exception_handler(request: Request, exc: BadRequestError) -> JSONResponse:
    """Exception handler for BadRequestError (invalid administrative input)."""
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def quota_exceeded_exception_handler(
    request: Request, exc: QuotaExceededError
) -> JSONResponse:
    """Exception handler for QuotaExceededError.

    Returns:
    -------
        JSONResponse: A 429 response carrying the current usage and the limit.

    """
    return JSONResponse(
        status_code=429,
        content={
            "detail": str(exc),
            "code": "USAGE_LIMIT_EXCEEDED",
            "current_usage": exc.current_usage,
            "limit": exc.limit,
        },
    )


async def duplicate_request_exception_handler(
    request: Request, exc: DuplicateRequestSuppressedError
) -> JSONResponse:
    """Exception handler for DuplicateRequestSuppressedError.

    Returns:
    -------
        JSONResponse: A 429 response with a ``Retry-After`` header in whole seconds.

    """
    retry_after = max(1, math.ceil(exc.retry_after))
    return JSONResponse(
        status_code=429,
        content={
            "detail": str(exc),
            "code": "REQUEST_TOO_FREQUENT",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


async def store_unavailable_exception_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    """Exception handler for StoreUnavailableError."""
    logger.with_context(request_id=getattr(request.state, "request_id", None)).error(
        f"Account store unavailable during {exc.operation}: {exc.message}"
    )
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "code": "STORE_UNAVAILABLE"},
    )


async def quotakeeper_exception_handler(
    request: Request, exc: QuotaKeeperException
) -> JSONResponse:
    """Fallback for QuotaKeeperException types without a dedicated handler."""
    logger.error(f"Unhandled {exc.__class__.__name__}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})
