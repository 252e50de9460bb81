"""Database layer - engine, base classes, history protection."""

from inventory_kernel.db.base import UUID, Base, UUIDString
from inventory_kernel.db.engine import (
    apply_lock_timeout,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_settings,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    session_scope,
)
from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.db.types import cost_impact, round_money

__all__ = [
    "init_engine_from_url",
    "init_engine_from_settings",
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "apply_lock_timeout",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "is_postgres",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
    "Base",
    "UUIDString",
    "UUID",
    "cost_impact",
    "round_money",
]
