"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repository functions for the projects table
"""

from bidding.db.database import current_db_path, get_db, init_db

__all__ = ["current_db_path", "get_db", "init_db"]
