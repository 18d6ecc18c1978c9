"""Repository functions for the projects table.

Provides CRUD operations for project records, plus SqliteOutlineStore,
the load/save collaborator used by the review flow.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import structlog

from bidding.core.normalizer import as_raw
from bidding.core.outline_model import OutlineDocumentSet
from bidding.db.database import get_db

logger = structlog.get_logger(__name__)

PROJECT_STATUSES = ("pending", "parsing", "parsed", "failed", "completed")


@dataclass
class ProjectRecord:
    """Project record from database."""

    project_id: str
    project_name: str
    file_name: str
    status: str
    parsed_data: dict[str, Any] | None
    created_at: str
    updated_at: str


def insert_project(
    project_id: str,
    project_name: str,
    file_name: str = "",
    status: str = "pending",
    parsed_data: dict[str, Any] | None = None,
) -> None:
    """Insert a new project record.

    Raises:
        sqlite3.IntegrityError: If project_id already exists or status is invalid
    """
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO projects (project_id, project_name, file_name, status, parsed_data)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                project_id,
                project_name,
                file_name,
                status,
                _dump(parsed_data),
            ),
        )

    logger.debug("projects.inserted", project_id=project_id, status=status)


def get_project_by_id(project_id: str) -> ProjectRecord | None:
    """Get project by ID, or None if not found."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM projects WHERE project_id = ?", (project_id,)
        ).fetchone()

    if row is None:
        return None

    return _row_to_record(row)


def get_all_projects() -> list[ProjectRecord]:
    """Get all projects, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM projects ORDER BY created_at, project_id"
        ).fetchall()

    return [_row_to_record(row) for row in rows]


def get_all_project_ids() -> list[str]:
    with get_db() as conn:
        rows = conn.execute("SELECT project_id FROM projects").fetchall()
    return [row["project_id"] for row in rows]


def update_parsed_data(project_id: str, parsed_data: dict[str, Any]) -> bool:
    """Replace a project's parsed data.

    Returns:
        True if the project exists and was updated
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE projects SET parsed_data = ?, updated_at = datetime('now')
            WHERE project_id = ?
            """,
            (_dump(parsed_data), project_id),
        )
        updated = cursor.rowcount > 0

    logger.debug("projects.parsed_data_updated", project_id=project_id, updated=updated)
    return updated


def update_status(project_id: str, status: str) -> bool:
    """Update project status.

    Raises:
        ValueError: If status is not a known project status
    """
    if status not in PROJECT_STATUSES:
        raise ValueError(f"未知的项目状态: {status}")

    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE projects SET status = ?, updated_at = datetime('now')
            WHERE project_id = ?
            """,
            (status, project_id),
        )
        updated = cursor.rowcount > 0

    logger.info("projects.status_updated", project_id=project_id, status=status, updated=updated)
    return updated


def delete_project(project_id: str) -> bool:
    """Delete a project record, outline included."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM projects WHERE project_id = ?", (project_id,))
        deleted = cursor.rowcount > 0

    logger.info("projects.deleted", project_id=project_id, deleted=deleted)
    return deleted


class SqliteOutlineStore:
    """Outline load/save backed by the projects table."""

    def load(self, project_id: str) -> dict[str, Any] | None:
        """Return raw parsed data for a project, or None if unknown."""
        record = get_project_by_id(project_id)
        if record is None:
            return None
        return record.parsed_data or {}

    def status(self, project_id: str) -> str | None:
        record = get_project_by_id(project_id)
        return record.status if record else None

    def save(self, project_id: str, doc: OutlineDocumentSet) -> None:
        """Replace the stored outline, keeping other parsed fields.

        Raises:
            KeyError: If the project does not exist
        """
        record = get_project_by_id(project_id)
        if record is None:
            raise KeyError(project_id)

        parsed = dict(record.parsed_data or {})
        parsed.update(as_raw(doc))
        update_parsed_data(project_id, parsed)


def _dump(parsed_data: dict[str, Any] | None) -> str | None:
    if parsed_data is None:
        return None
    return json.dumps(parsed_data, ensure_ascii=False)


def _row_to_record(row) -> ProjectRecord:
    """Convert database row to ProjectRecord."""
    parsed = json.loads(row["parsed_data"]) if row["parsed_data"] else None
    return ProjectRecord(
        project_id=row["project_id"],
        project_name=row["project_name"],
        file_name=row["file_name"],
        status=row["status"],
        parsed_data=parsed,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
