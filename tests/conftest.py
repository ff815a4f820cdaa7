"""Shared test fixtures for the Verifiable Escrow test suite.

Provides:
    - Test settings bound to an in-memory SQLite database
    - A fresh schema per test (engine + session factory)
    - An EscrowHarness that runs one registry call per transaction
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import pytest_asyncio

from tests.factories import EscrowHarness
from verifiable_escrow.config import Settings
from verifiable_escrow.infrastructure.database.engine import (
    create_engine_from_settings,
    create_tables,
    make_session_factory,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="development",
        database_url="sqlite+aiosqlite:///:memory:",
        mcp_enabled=False,
    )


@pytest_asyncio.fixture
async def session_factory(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """A session factory over a freshly created in-memory schema."""
    engine = create_engine_from_settings(settings)
    await create_tables(engine)
    try:
        yield make_session_factory(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """A single session for unit tests that do not need commit boundaries."""
    async with session_factory() as s:
        yield s
        await s.rollback()


@pytest.fixture
def harness(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings
) -> EscrowHarness:
    return EscrowHarness(session_factory, settings)
