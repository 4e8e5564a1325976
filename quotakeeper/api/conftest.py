"""API test fixtures.

Provides an async HTTP client wired to the FastAPI app with the DI container
overridden to use fakes. Available to all colocated API tests under api/.

Pattern:
    1. Override get_container -> returns test_container
    2. Override get_db        -> yields an AsyncMock session
    3. Test hits the endpoint, asserts on HTTP response + fake state
"""

from unittest.mock import AsyncMock

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from quotakeeper.api.deps import get_container, get_db


async def _fake_db():
    yield AsyncMock()


@pytest_asyncio.fixture
async def client(test_container):
    """Async HTTP client with faked DI container and database session."""
    from quotakeeper.main import app

    app.dependency_overrides[get_container] = lambda: test_container
    app.dependency_overrides[get_db] = _fake_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
