"""Database session management for Flowboard."""

from src.c1_database_session.base import Base
from src.c1_database_session.database_manager import DatabaseManager

__all__ = ["Base", "DatabaseManager"]
