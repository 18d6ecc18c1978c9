"""Viewing/Editing state machine for the review screen.

Beginning an edit snapshots the canonical outline as a working copy; every
tree operation issued while editing applies to that copy. save() commits
the working copy, cancel() leaves editing according to the cancel policy:

- "restore": the working copy is discarded
- "keep": mutations already applied stay in the canonical outline, which
  is how the review screen has historically behaved
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum, auto
from typing import Literal

import structlog

from bidding.core import outline_tree
from bidding.core.outline_model import DEFAULT_FILE_NAME, OutlineDocumentSet, OutlineNode
from bidding.core.outline_tree import NodeField, Path

logger = structlog.get_logger(__name__)

CancelPolicy = Literal["restore", "keep"]
CANCEL_POLICIES: tuple[str, ...] = ("restore", "keep")


class SessionState(Enum):
    """Editing session states."""

    VIEWING = auto()
    EDITING = auto()


class EditingSessionError(Exception):
    """Base exception for editing session errors."""

    pass


class NotEditingError(EditingSessionError):
    """Raised when a mutation is issued outside the Editing state."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"未处于编辑状态，无法执行: {operation}")


class AlreadyEditingError(EditingSessionError):
    """Raised when begin_edit is called while another edit is open."""

    def __init__(self, section_key: str):
        self.section_key = section_key
        super().__init__(f"正在编辑 '{section_key}'，请先保存或取消")


class EditingSession:
    """Scopes outline mutations to a working copy.

    Args:
        document: Canonical outline to start from
        cancel_policy: "restore" (default) or "keep"
        on_commit: Called with the committed outline after save()
    """

    def __init__(
        self,
        document: OutlineDocumentSet,
        cancel_policy: CancelPolicy = "restore",
        on_commit: Callable[[OutlineDocumentSet], None] | None = None,
    ):
        if cancel_policy not in CANCEL_POLICIES:
            raise ValueError(f"未知的取消策略: {cancel_policy}")

        self._document = document
        self._snapshot: OutlineDocumentSet | None = None
        self._working: OutlineDocumentSet | None = None
        self._section_key: str | None = None
        self.cancel_policy = cancel_policy
        self.on_commit = on_commit

    @property
    def state(self) -> SessionState:
        return SessionState.EDITING if self._section_key is not None else SessionState.VIEWING

    @property
    def section_key(self) -> str | None:
        return self._section_key

    @property
    def document(self) -> OutlineDocumentSet:
        """The committed canonical outline."""
        return self._document

    @property
    def current(self) -> OutlineDocumentSet:
        """What the screen shows: the working copy while editing."""
        if self._working is not None:
            return self._working
        return self._document

    @property
    def is_modified(self) -> bool:
        """True if the working copy differs from the snapshot."""
        return self._working is not None and self._working != self._snapshot

    def begin_edit(self, section_key: str) -> OutlineDocumentSet:
        """Enter Editing state, snapshotting the canonical outline.

        Raises:
            AlreadyEditingError: If an edit is already open
        """
        if self._section_key is not None:
            raise AlreadyEditingError(self._section_key)

        self._section_key = section_key
        self._snapshot = self._document
        self._working = self._document
        logger.info("editing_session.begin", section_key=section_key)
        return self._working

    def save(self) -> OutlineDocumentSet:
        """Commit the working copy and return to Viewing.

        Raises:
            NotEditingError: If no edit is open
        """
        working = self._require_working("save")
        modified = self.is_modified

        self._document = working
        self._leave_editing()
        logger.info("editing_session.saved", modified=modified)

        if self.on_commit is not None:
            self.on_commit(self._document)
        return self._document

    def cancel(self) -> OutlineDocumentSet:
        """Leave Editing state according to the cancel policy.

        Raises:
            NotEditingError: If no edit is open
        """
        working = self._require_working("cancel")
        modified = self.is_modified

        if self.cancel_policy == "keep":
            self._document = working
        self._leave_editing()
        logger.info("editing_session.cancelled", policy=self.cancel_policy, modified=modified)
        return self._document

    def _leave_editing(self) -> None:
        self._section_key = None
        self._snapshot = None
        self._working = None

    def _require_working(self, operation: str) -> OutlineDocumentSet:
        if self._working is None:
            raise NotEditingError(operation)
        return self._working

    # -------------------------------------------------------------------------
    # Tree operations on the working copy
    # -------------------------------------------------------------------------

    def set_field(
        self, file_index: int, path: Sequence[int], field: NodeField, value: str
    ) -> OutlineDocumentSet:
        working = self._require_working("set_field")
        self._working = outline_tree.set_field(working, file_index, path, field, value)
        return self._working

    def add_child(
        self, file_index: int, path: Sequence[int], new_node: OutlineNode | None = None
    ) -> tuple[OutlineDocumentSet, Path]:
        working = self._require_working("add_child")
        self._working, child_path = outline_tree.add_child(working, file_index, path, new_node)
        return self._working, child_path

    def add_root_node(
        self, file_index: int, new_node: OutlineNode | None = None
    ) -> tuple[OutlineDocumentSet, Path]:
        working = self._require_working("add_root_node")
        self._working, root_path = outline_tree.add_root_node(working, file_index, new_node)
        return self._working, root_path

    def remove_node(self, file_index: int, path: Sequence[int]) -> OutlineDocumentSet:
        working = self._require_working("remove_node")
        self._working = outline_tree.remove_node(working, file_index, path)
        return self._working

    def add_file(
        self, name: str = DEFAULT_FILE_NAME, initial_node: OutlineNode | None = None
    ) -> OutlineDocumentSet:
        working = self._require_working("add_file")
        self._working = outline_tree.add_file(working, name, initial_node)
        return self._working

    def remove_file(self, file_index: int) -> OutlineDocumentSet:
        """Remove a file; the only remaining file is kept (no-op)."""
        working = self._require_working("remove_file")
        self._working = outline_tree.remove_file(working, file_index)
        return self._working

    def rename_file(self, file_index: int, name: str) -> OutlineDocumentSet:
        working = self._require_working("rename_file")
        self._working = outline_tree.rename_file(working, file_index, name)
        return self._working

    def set_summary(self, summary: str) -> OutlineDocumentSet:
        working = self._require_working("set_summary")
        self._working = outline_tree.set_summary(working, summary)
        return self._working

    def replace_document(self, document: OutlineDocumentSet) -> OutlineDocumentSet:
        """Swap the whole working copy, e.g. for a reviewed YAML import."""
        self._require_working("replace_document")
        self._working = document
        return self._working
