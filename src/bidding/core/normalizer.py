"""Migration of raw project data into a canonical outline.

Stored and freshly parsed projects carry ``documentDirectory`` in one of
three historical shapes:

1. missing: absent, null or not a mapping
2. canonical: ``{"summary": ..., "files": [...]}``, ``contentFormat`` possibly
   missing on any node
3. legacy flat: ``{"commercial": "<lines>", "technical": "<lines>"}``

classify_raw() discriminates once; normalize() dispatches on the result and
always returns a document with at least one file, each with at least one
root node. It never raises.

Content backfill: a node whose ``contentFormat`` is blank gets the boilerplate
for its title (possibly ""). Non-blank text is never touched, so running
normalize() on its own output is a no-op.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal, Union

import structlog

from bidding.core.outline_model import (
    DEFAULT_CHAPTER_TITLE,
    DEFAULT_DESCRIPTION,
    OutlineDocumentSet,
    OutlineFile,
    OutlineNode,
)
from bidding.core.template_resolver import resolve_template

logger = structlog.get_logger(__name__)

OutlineMode = Literal["directory", "format"]

COMMERCIAL_FILE_NAME = "商务文件"
TECHNICAL_FILE_NAME = "技术文件"

# Skeleton summary per user-facing label
SKELETON_SUMMARIES: dict[str, str] = {
    "directory": "请手动录入投标文件目录。",
    "format": "请手动录入投标文件格式。",
}


@dataclass(frozen=True)
class MissingDirectory:
    """No usable outline data."""


@dataclass(frozen=True)
class CanonicalDirectory:
    """Already structured outline data."""

    data: Mapping[str, Any]


@dataclass(frozen=True)
class LegacyFlatDirectory:
    """Newline-delimited chapter lists per file."""

    commercial: str = ""
    technical: str = ""


RawDirectory = Union[MissingDirectory, CanonicalDirectory, LegacyFlatDirectory]


def classify_raw(raw: Any) -> RawDirectory:
    """Determine which historical shape a raw project record carries.

    Args:
        raw: Raw project data (any value; typically a decoded JSON object)

    Returns:
        One of MissingDirectory, CanonicalDirectory, LegacyFlatDirectory
    """
    if not isinstance(raw, Mapping):
        return MissingDirectory()

    directory = raw.get("documentDirectory")
    if not isinstance(directory, Mapping):
        return MissingDirectory()

    if directory.get("files") is not None:
        return CanonicalDirectory(data=directory)

    commercial = directory.get("commercial")
    technical = directory.get("technical")
    return LegacyFlatDirectory(
        commercial=commercial if isinstance(commercial, str) else "",
        technical=technical if isinstance(technical, str) else "",
    )


def skeleton_document(mode: OutlineMode = "directory") -> OutlineDocumentSet:
    """Minimal valid outline shown when nothing usable was provided."""
    root = _backfill_node(OutlineNode(title=DEFAULT_CHAPTER_TITLE, description=DEFAULT_DESCRIPTION))
    return OutlineDocumentSet(
        summary=_skeleton_summary(mode),
        files=(OutlineFile(name=COMMERCIAL_FILE_NAME, items=(root,)),),
    )


def _skeleton_summary(mode: str) -> str:
    return SKELETON_SUMMARIES.get(mode, SKELETON_SUMMARIES["directory"])


def _fill_content(node: OutlineNode, children: list[OutlineNode]) -> OutlineNode:
    if node.content_format.strip():
        content_format = node.content_format
    else:
        content_format = resolve_template(node.title)

    unchanged = content_format == node.content_format and all(
        new is old for new, old in zip(children, node.children)
    )
    if unchanged:
        return node
    return replace(node, content_format=content_format, children=tuple(children))


def _backfill_node(node: OutlineNode) -> OutlineNode:
    """Fill blank content formats in a subtree.

    Walks with an explicit stack; unchanged subtrees are returned as-is.
    """
    filled: list[OutlineNode] = []
    # Frame: (node, pending children, filled children, parent's list)
    stack = [(node, iter(node.children), [], filled)]
    while stack:
        current, pending, children, out = stack[-1]
        child = next(pending, None)
        if child is not None:
            stack.append((child, iter(child.children), [], children))
            continue

        stack.pop()
        out.append(_fill_content(current, children))
    return filled[0]


def _normalize_canonical(directory: CanonicalDirectory, mode: OutlineMode) -> OutlineDocumentSet:
    doc = OutlineDocumentSet.from_dict(directory.data)

    summary = directory.data.get("summary")
    if not isinstance(summary, str):
        summary = _skeleton_summary(mode)

    files = tuple(
        replace(f, items=tuple(_backfill_node(item) for item in f.items)) for f in doc.files
    )

    if not files or any(not f.items for f in files):
        logger.warning(
            "normalizer.canonical_empty_file",
            file_count=len(files),
            empty_files=[f.name for f in files if not f.items],
        )
        return skeleton_document(mode)

    return OutlineDocumentSet(summary=summary, files=files)


def _lines_to_nodes(text: str) -> tuple[OutlineNode, ...]:
    return tuple(
        OutlineNode(title=line.strip(), description="", content_format=resolve_template(line.strip()))
        for line in text.splitlines()
        if line.strip()
    )


def _normalize_legacy(directory: LegacyFlatDirectory, mode: OutlineMode) -> OutlineDocumentSet:
    files: list[OutlineFile] = []
    for name, text in (
        (COMMERCIAL_FILE_NAME, directory.commercial),
        (TECHNICAL_FILE_NAME, directory.technical),
    ):
        nodes = _lines_to_nodes(text)
        if nodes:
            files.append(OutlineFile(name=name, items=nodes))

    if not files:
        return skeleton_document(mode)

    names = "、".join(f.name for f in files)
    logger.info(
        "normalizer.legacy_migrated",
        files=[f.name for f in files],
        nodes=sum(len(f.items) for f in files),
    )
    return OutlineDocumentSet(
        summary=f"本次投标需要提交{len(files)}个文件：{names}。",
        files=tuple(files),
    )


def normalize(raw: Any, mode: OutlineMode = "directory") -> OutlineDocumentSet:
    """Convert raw project data into a canonical outline.

    Args:
        raw: Raw project data holding an optional ``documentDirectory``
        mode: "directory" or "format"; only affects generated placeholder text

    Returns:
        OutlineDocumentSet with at least one file, each with at least one node
    """
    directory = classify_raw(raw)

    if isinstance(directory, CanonicalDirectory):
        return _normalize_canonical(directory, mode)
    if isinstance(directory, LegacyFlatDirectory):
        return _normalize_legacy(directory, mode)

    logger.debug("normalizer.missing_directory", mode=mode)
    return skeleton_document(mode)


def as_raw(doc: OutlineDocumentSet) -> dict[str, Any]:
    """Wrap a canonical document back into raw project shape."""
    return {"documentDirectory": doc.to_dict()}


def normalize_project(raw: Any, mode: OutlineMode = "directory") -> dict[str, Any]:
    """Return a copy of a raw project record with its outline normalized.

    Fields other than ``documentDirectory`` are carried over unchanged.
    """
    project = dict(raw) if isinstance(raw, Mapping) else {}
    project["documentDirectory"] = normalize(raw, mode).to_dict()
    return project
