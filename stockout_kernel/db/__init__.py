"""Database layer: declarative base, engine and session management,
immutability listeners and server-side procedures."""

from stockout_kernel.db.base import Base, TrackedBase, UUIDString
from stockout_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    savepoint,
    session_scope,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "savepoint",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "is_postgres",
]
