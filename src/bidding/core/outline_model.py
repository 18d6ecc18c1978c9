"""Bid-document outline data model.

A project's required-chapters outline is a set of submission files
("商务文件", "技术文件", ...), each holding an ordered forest of chapter
nodes of unbounded depth.

All types are immutable. Edits go through the pure helpers in
outline_tree, which rebuild only the touched spine and share the rest.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

# Defaults used by the review screen when creating new entries
DEFAULT_SECTION_TITLE = "新增章节"
DEFAULT_CHAPTER_TITLE = "第一章"
DEFAULT_DESCRIPTION = "请输入说明"
DEFAULT_FILE_NAME = "新文件"


def _as_text(value: Any) -> str:
    """Coerce a raw field value to text. None becomes empty."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _as_sequence(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _child_mappings(data: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return [child for child in _as_sequence(data.get("children")) if isinstance(child, Mapping)]


@dataclass(frozen=True)
class OutlineNode:
    """A chapter or section of the outline."""

    title: str
    description: str = ""
    content_format: str = ""
    children: tuple[OutlineNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted key-value shape."""
        return {
            "title": self.title,
            "description": self.description,
            "contentFormat": self.content_format,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutlineNode:
        """Build a node from raw data, tolerating missing fields.

        Entries of ``children`` that are not mappings are dropped. Built
        with an explicit stack, so nesting depth is not bounded by the
        interpreter's recursion limit.
        """
        built: list[OutlineNode] = []
        # Frame: (raw mapping, pending raw children, finished children, parent's list)
        stack = [(data, iter(_child_mappings(data)), [], built)]
        while stack:
            raw, pending, children, out = stack[-1]
            child = next(pending, None)
            if child is not None:
                stack.append((child, iter(_child_mappings(child)), [], children))
                continue

            stack.pop()
            out.append(
                cls(
                    title=_as_text(raw.get("title")),
                    description=_as_text(raw.get("description")),
                    content_format=_as_text(raw.get("contentFormat")),
                    children=tuple(children),
                )
            )
        return built[0]


@dataclass(frozen=True)
class OutlineFile:
    """One top-level submission bundle."""

    name: str
    items: tuple[OutlineNode, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutlineFile:
        return cls(
            name=_as_text(data.get("name")),
            items=tuple(
                OutlineNode.from_dict(item)
                for item in _as_sequence(data.get("items"))
                if isinstance(item, Mapping)
            ),
        )


@dataclass(frozen=True)
class OutlineDocumentSet:
    """Canonical outline for one project."""

    summary: str
    files: tuple[OutlineFile, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted/exported shape."""
        return {
            "summary": self.summary,
            "files": [f.to_dict() for f in self.files],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OutlineDocumentSet:
        return cls(
            summary=_as_text(data.get("summary")),
            files=tuple(
                OutlineFile.from_dict(f)
                for f in _as_sequence(data.get("files"))
                if isinstance(f, Mapping)
            ),
        )

    def count_nodes(self) -> int:
        """Total number of nodes across all files, at every depth."""

        total = 0
        pending = [node for f in self.files for node in f.items]
        while pending:
            node = pending.pop()
            total += 1
            pending.extend(node.children)
        return total
