"""Database package."""

from .connection import create_db_engine, create_session_factory, init_db, check_db_connection
from .crud import PropertyStore, SQLAlchemyPropertyStore

__all__ = [
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "check_db_connection",
    "PropertyStore",
    "SQLAlchemyPropertyStore",
]
