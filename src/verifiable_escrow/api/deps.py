"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
services, the per-request call context, and configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002 - resolved at runtime by FastAPI

from verifiable_escrow.config import Settings, get_settings
from verifiable_escrow.domain.context import CallContext
from verifiable_escrow.infrastructure.database.engine import transaction
from verifiable_escrow.infrastructure.database.orm_models import MAX_STORED_INT
from verifiable_escrow.services.escrow_registry import EscrowRegistry
from verifiable_escrow.services.transfer_service import TransferService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session whose transaction spans the whole request."""
    async with transaction() as session:
        yield session


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


def get_call_context(
    caller: str = Header(..., alias="X-Caller-Address", min_length=1, max_length=64),
    block_height: int = Header(0, alias="X-Block-Height", ge=0, le=MAX_STORED_INT),
) -> CallContext:
    """Build the call context from the submitting client's headers."""
    return CallContext(caller=caller, block_height=block_height)


def get_read_context(
    block_height: int = Header(0, alias="X-Block-Height", ge=0, le=MAX_STORED_INT),
) -> CallContext:
    """Context for read-only calls, which have no meaningful caller."""
    return CallContext(caller="ANONYMOUS", block_height=block_height)


async def get_registry(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> EscrowRegistry:
    """Provide an EscrowRegistry bound to the current session."""
    return EscrowRegistry(session, settings=settings)


async def get_transfer_service(
    session: AsyncSession = Depends(get_db_session),
) -> TransferService:
    return TransferService(session)
