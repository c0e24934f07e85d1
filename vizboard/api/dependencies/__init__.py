"""
FastAPI dependencies for dependency injection.

Authentication dependencies live in ``vizboard.api.dependencies.auth``.
"""

from .database import get_db, init_database, check_database_connection

__all__ = [
    # Database
    "get_db",
    "init_database",
    "check_database_connection",
]
