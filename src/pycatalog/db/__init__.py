"""Database layer for PyCatalog."""

from pycatalog.db.base import Base
from pycatalog.db.session import (
    close_db,
    get_db_context,
    get_engine,
    get_session_factory,
    init_db,
)

__all__ = [
    "Base",
    "close_db",
    "get_db_context",
    "get_engine",
    "get_session_factory",
    "init_db",
]
