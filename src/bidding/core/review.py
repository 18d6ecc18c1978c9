"""Review flow: load a project's outline, edit it, save it back.

Storage is only touched at the edges: load() before normalization and
save() when an editing session commits.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

from bidding.core.editing_session import CancelPolicy, EditingSession
from bidding.core.normalizer import OutlineMode, normalize
from bidding.core.outline_model import OutlineDocumentSet
from bidding.core.outline_tree import fill_empty_files

logger = structlog.get_logger(__name__)

OUTLINE_SECTION_KEY = "documentDirectory"


class OutlineStore(Protocol):
    """Key-value storage collaborator for project outlines."""

    def load(self, project_id: str) -> dict[str, Any] | None: ...

    def save(self, project_id: str, doc: OutlineDocumentSet) -> None: ...

    def status(self, project_id: str) -> str | None: ...


class ReviewError(Exception):
    """Base exception for review flow errors."""

    pass


class ProjectNotFoundError(ReviewError):
    """Raised when the store has no record for a project."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"项目不存在: {project_id}")


class ProjectCompletedError(ReviewError):
    """Raised when editing a project whose review is already confirmed."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"项目 {project_id} 已完成核对，不可编辑")


def load_outline(
    project_id: str, store: OutlineStore, mode: OutlineMode = "directory"
) -> OutlineDocumentSet:
    """Load and normalize a project's outline.

    Raises:
        ProjectNotFoundError: If the store has no record for project_id
    """
    raw = store.load(project_id)
    if raw is None:
        raise ProjectNotFoundError(project_id)
    return normalize(raw, mode)


def open_review(
    project_id: str,
    store: OutlineStore,
    mode: OutlineMode = "directory",
    cancel_policy: CancelPolicy = "restore",
) -> EditingSession:
    """Open an editing session whose commits are saved to store.

    Raises:
        ProjectNotFoundError: If the store has no record for project_id
        ProjectCompletedError: If the project is already completed
    """
    doc = load_outline(project_id, store, mode)
    if store.status(project_id) == "completed":
        raise ProjectCompletedError(project_id)

    def _commit(committed: OutlineDocumentSet) -> None:
        # A stored file with no items would make the next load fall back
        # to the skeleton and drop every other file.
        committed = fill_empty_files(committed)
        store.save(project_id, committed)
        logger.info("review.outline_saved", project_id=project_id, nodes=committed.count_nodes())

    logger.info("review.opened", project_id=project_id, mode=mode, files=len(doc.files))
    return EditingSession(doc, cancel_policy=cancel_policy, on_commit=_commit)
