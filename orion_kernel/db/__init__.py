"""Database layer - declarative base and engine/session management."""

from orion_kernel.db.base import Base, UUIDString
from orion_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "Base",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
