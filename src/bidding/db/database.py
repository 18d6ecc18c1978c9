"""SQLite storage for bidding projects.

One table, ``projects``, holds each project's metadata and its parse
result as JSON (``parsed_data``). The outline under review lives inside
that JSON as ``documentDirectory``; only the review flow rewrites it.

The schema version is kept in ``PRAGMA user_version`` so an older
database file is recognised and brought up to date by init_db().
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_DB_PATH = Path("db/bidding.db")

SCHEMA_VERSION = 1

# Set by init_db(); the CLI opens one database per invocation
_active_path: Path | None = None


def current_db_path() -> Path:
    """Path of the database get_db() connects to."""
    return _active_path or DEFAULT_DB_PATH


def init_db(db_path: Path | None = None) -> Path:
    """Select the project database and make sure its schema is current.

    Args:
        db_path: Database file; defaults to db/bidding.db under the
            working directory

    Returns:
        The path now used by get_db()
    """
    global _active_path
    _active_path = db_path or DEFAULT_DB_PATH

    with get_db() as conn:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version < SCHEMA_VERSION:
            _create_schema(conn)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            logger.info("database.schema_created", path=str(_active_path), version=SCHEMA_VERSION)

    return _active_path


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Open a connection to the project database.

    The transaction is committed when the block exits normally and
    rolled back if it raises.

    Yields:
        Connection whose rows are sqlite3.Row (access by column name)
    """
    path = db_path or current_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        -- parsed_data holds the parse result as JSON, documentDirectory included
        CREATE TABLE IF NOT EXISTS projects (
            project_id TEXT PRIMARY KEY,
            project_name TEXT NOT NULL,
            file_name TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'parsing', 'parsed', 'failed', 'completed')),
            parsed_data TEXT,
            created_at TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        CREATE INDEX IF NOT EXISTS idx_projects_status ON projects(status);
        """
    )
