"""Database layer - engine, base classes, and quantity helpers."""

from mes_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from mes_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from mes_kernel.db.types import ZERO, to_quantity

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "ZERO",
    "to_quantity",
]
