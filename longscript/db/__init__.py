"""Postgres persistence for scripts and credits."""

from .connection import close_connection_pool, get_connection, get_connection_pool
from .credits import PostgresLedger
from .init import init_database, validate_connection
from .scripts import PostgresScriptStore

__all__ = [
    "PostgresLedger",
    "PostgresScriptStore",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "validate_connection",
]
