"""Main module of the FastAPI application.

This module sets up the FastAPI application, its middleware and exception
handlers, and the lifespan that owns the reconciliation scheduler.
"""

import os
import subprocess
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from quotakeeper.api.middleware import (
    add_request_id,
    bad_request_exception_handler,
    duplicate_request_exception_handler,
    exception_logging_middleware,
    log_requests,
    not_found_exception_handler,
    quota_exceeded_exception_handler,
    quotakeeper_exception_handler,
    store_unavailable_exception_handler,
    validation_exception_handler,
)
from quotakeeper.api.v1.api import api_router
from quotakeeper.core.config import settings
from quotakeeper.core.exceptions import (
    BadRequestError,
    NotFoundException,
    QuotaKeeperException,
    StoreUnavailableError,
)
from quotakeeper.core.logging import LoggerConfigurator, logger
from quotakeeper.domains.usage.exceptions import (
    DuplicateRequestSuppressedError,
    QuotaExceededError,
)


def _run_migrations() -> None:
    logger.info("Running alembic migrations...")
    env = os.environ.copy()
    project_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env["PYTHONPATH"] = project_dir
    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        cwd=project_dir,
        env=env,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events.

    Initializes the DI container, runs alembic migrations when enabled, and
    starts the reconciliation scheduler. On shutdown the scheduler is stopped;
    a sweep that is in flight finishes first.
    """
    LoggerConfigurator.configure(level=settings.LOG_LEVEL, json_format=not settings.is_local)

    # Initialize the dependency injection container (fail fast if wiring is broken)
    from quotakeeper.core import container as container_mod
    from quotakeeper.core.container import initialize_container

    logger.info("Initializing dependency injection container...")
    initialize_container(settings)
    logger.info("Container initialized successfully")

    if settings.RUN_ALEMBIC_MIGRATIONS:
        _run_migrations()

    scheduler = container_mod.container.reconciliation_scheduler
    if settings.RECONCILIATION_ENABLED:
        scheduler.start()
    else:
        logger.info("Reconciliation scheduler disabled; relying on lazy reconciliation only")

    try:
        yield
    finally:
        await scheduler.stop()
        container_mod.reset_container()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(api_router)

# Register middleware directly in the correct order
# Order matters: first registered = innermost, last registered = outermost
app.middleware("http")(exception_logging_middleware)
app.middleware("http")(log_requests)
app.middleware("http")(add_request_id)

# Register exception handlers
app.exception_handler(RequestValidationError)(validation_exception_handler)
app.exception_handler(ValidationError)(validation_exception_handler)
app.exception_handler(NotFoundException)(not_found_exception_handler)
app.exception_handler(BadRequestError)(bad_request_exception_handler)
app.exception_handler(QuotaExceededError)(quota_exceeded_exception_handler)
app.exception_handler(DuplicateRequestSuppressedError)(duplicate_request_exception_handler)
app.exception_handler(StoreUnavailableError)(store_unavailable_exception_handler)

# Fallback for the remaining QuotaKeeperException types
app.exception_handler(QuotaKeeperException)(quotakeeper_exception_handler)
