"""Database infrastructure: engine, ORM models, repositories."""

from verifiable_escrow.infrastructure.database.engine import (
    close_db,
    create_engine_from_settings,
    create_tables,
    init_db,
    make_session_factory,
    transaction,
)
from verifiable_escrow.infrastructure.database.orm_models import Base

__all__ = [
    "Base",
    "close_db",
    "create_engine_from_settings",
    "create_tables",
    "init_db",
    "make_session_factory",
    "transaction",
]
