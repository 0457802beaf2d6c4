"""
Database package initialization.
"""

from fxtrader.core.exceptions import DatabaseError
from fxtrader.db.database import (
    Base,
    async_session_maker,
    check_database_health,
    close_db,
    engine,
    get_db,
    init_db,
)
from fxtrader.db.models import ConfigDocumentModel

__all__ = [
    # Database
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "init_db",
    "close_db",
    "check_database_health",
    "DatabaseError",
    # Models
    "ConfigDocumentModel",
]
