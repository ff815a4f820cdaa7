"""Fixtures for exercising the FastAPI app against the in-memory test database."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest_asyncio

from verifiable_escrow.api.deps import get_app_settings, get_db_session
from verifiable_escrow.infrastructure.database.engine import transaction
from verifiable_escrow.main import create_app

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest_asyncio.fixture
async def client(session_factory, settings) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings)

    async def override_session():
        async with transaction(session_factory) as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides[get_app_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

