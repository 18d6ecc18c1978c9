"""Path-addressed operations on an outline document.

A path is a sequence of non-negative indices: the first selects a root
node in a file's ``items``, each following index selects a child of the
node reached so far.

Every mutating function returns a new OutlineDocumentSet. Only the target
node and its ancestor chain up to the file are rebuilt; untouched files,
siblings and subtrees are shared by reference.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from dataclasses import replace
from typing import Literal

import structlog

from bidding.core.outline_model import (
    DEFAULT_CHAPTER_TITLE,
    DEFAULT_DESCRIPTION,
    DEFAULT_FILE_NAME,
    DEFAULT_SECTION_TITLE,
    OutlineDocumentSet,
    OutlineFile,
    OutlineNode,
)

logger = structlog.get_logger(__name__)

Path = tuple[int, ...]
NodeField = Literal["title", "description", "content_format", "contentFormat"]

# Wire names accepted alongside attribute names
_FIELD_ALIASES = {
    "title": "title",
    "description": "description",
    "content_format": "content_format",
    "contentFormat": "content_format",
}


class OutlineTreeError(Exception):
    """Base exception for outline tree errors."""

    pass


class PathNotFoundError(OutlineTreeError):
    """Raised when a path does not address a node."""

    def __init__(self, file_index: int, path: Sequence[int]):
        self.file_index = file_index
        self.path = tuple(path)
        super().__init__(
            f"文件 {file_index} 中不存在路径 {'.'.join(map(str, self.path)) or '(空)'}"
        )


class OutlineFileNotFoundError(PathNotFoundError):
    """Raised when the file index is out of range."""

    def __init__(self, file_index: int, file_count: int):
        self.file_count = file_count
        OutlineTreeError.__init__(
            self, f"文件序号 {file_index} 超出范围（共 {file_count} 个文件）"
        )
        self.file_index = file_index
        self.path = ()


def _get_file(doc: OutlineDocumentSet, file_index: int) -> OutlineFile:
    if not 0 <= file_index < len(doc.files):
        raise OutlineFileNotFoundError(file_index, len(doc.files))
    return doc.files[file_index]


def _replace_file(
    doc: OutlineDocumentSet, file_index: int, new_file: OutlineFile
) -> OutlineDocumentSet:
    files = doc.files[:file_index] + (new_file,) + doc.files[file_index + 1 :]
    return replace(doc, files=files)


def _rebuild(
    nodes: tuple[OutlineNode, ...],
    path: Path,
    transform: Callable[[OutlineNode], OutlineNode],
    file_index: int,
    full_path: Path,
) -> tuple[OutlineNode, ...]:
    """Apply transform to the node at path, cloning only the spine."""
    index = path[0]
    if not 0 <= index < len(nodes):
        raise PathNotFoundError(file_index, full_path)

    node = nodes[index]
    if len(path) == 1:
        new_node = transform(node)
    else:
        new_node = replace(
            node,
            children=_rebuild(node.children, path[1:], transform, file_index, full_path),
        )
    return nodes[:index] + (new_node,) + nodes[index + 1 :]


def _update_node(
    doc: OutlineDocumentSet,
    file_index: int,
    path: Sequence[int],
    transform: Callable[[OutlineNode], OutlineNode],
) -> OutlineDocumentSet:
    file = _get_file(doc, file_index)
    path = tuple(path)
    if not path:
        raise PathNotFoundError(file_index, path)
    items = _rebuild(file.items, path, transform, file_index, path)
    return _replace_file(doc, file_index, replace(file, items=items))


def get_node(doc: OutlineDocumentSet, file_index: int, path: Sequence[int]) -> OutlineNode:
    """Return the node addressed by path.

    Raises:
        OutlineFileNotFoundError: If file_index is out of range
        PathNotFoundError: If any step of path is out of range
    """
    nodes = _get_file(doc, file_index).items
    node: OutlineNode | None = None
    for index in path:
        if not 0 <= index < len(nodes):
            raise PathNotFoundError(file_index, path)
        node = nodes[index]
        nodes = node.children

    if node is None:
        raise PathNotFoundError(file_index, path)
    return node


def set_field(
    doc: OutlineDocumentSet,
    file_index: int,
    path: Sequence[int],
    field: NodeField,
    value: str,
) -> OutlineDocumentSet:
    """Set title, description or content format of one node.

    Raises:
        ValueError: If field is not an editable node field
        PathNotFoundError: If path does not address a node
    """
    attr = _FIELD_ALIASES.get(field)
    if attr is None:
        raise ValueError(f"不支持的字段: {field}")

    new_doc = _update_node(doc, file_index, path, lambda node: replace(node, **{attr: value}))
    logger.debug("outline_tree.field_set", file_index=file_index, path=list(path), field=attr)
    return new_doc


def add_child(
    doc: OutlineDocumentSet,
    file_index: int,
    path: Sequence[int],
    new_node: OutlineNode | None = None,
) -> tuple[OutlineDocumentSet, Path]:
    """Append a child to the node at path.

    Returns:
        Tuple of (new document, path of the inserted child)
    """
    if new_node is None:
        new_node = OutlineNode(title=DEFAULT_SECTION_TITLE, description=DEFAULT_DESCRIPTION)

    parent = get_node(doc, file_index, path)
    child_path = tuple(path) + (len(parent.children),)

    new_doc = _update_node(
        doc,
        file_index,
        path,
        lambda node: replace(node, children=node.children + (new_node,)),
    )
    logger.debug("outline_tree.child_added", file_index=file_index, path=list(child_path))
    return new_doc, child_path


def add_root_node(
    doc: OutlineDocumentSet,
    file_index: int,
    new_node: OutlineNode | None = None,
) -> tuple[OutlineDocumentSet, Path]:
    """Append a root node to a file's items.

    Returns:
        Tuple of (new document, path of the inserted root)
    """
    if new_node is None:
        new_node = OutlineNode(title=DEFAULT_CHAPTER_TITLE, description=DEFAULT_DESCRIPTION)

    file = _get_file(doc, file_index)
    root_path = (len(file.items),)
    new_doc = _replace_file(doc, file_index, replace(file, items=file.items + (new_node,)))
    logger.debug("outline_tree.root_added", file_index=file_index, path=list(root_path))
    return new_doc, root_path


def remove_node(
    doc: OutlineDocumentSet, file_index: int, path: Sequence[int]
) -> OutlineDocumentSet:
    """Remove the node at path from its parent collection.

    Removing the last root of a file leaves it with no items; the next
    normalization pass restores a placeholder.

    Raises:
        PathNotFoundError: If path does not address a node
    """
    path = tuple(path)
    get_node(doc, file_index, path)
    index = path[-1]

    if len(path) == 1:
        file = doc.files[file_index]
        items = file.items[:index] + file.items[index + 1 :]
        new_doc = _replace_file(doc, file_index, replace(file, items=items))
    else:
        new_doc = _update_node(
            doc,
            file_index,
            path[:-1],
            lambda parent: replace(
                parent, children=parent.children[:index] + parent.children[index + 1 :]
            ),
        )

    logger.debug("outline_tree.node_removed", file_index=file_index, path=list(path))
    return new_doc


def add_file(
    doc: OutlineDocumentSet,
    name: str = DEFAULT_FILE_NAME,
    initial_node: OutlineNode | None = None,
) -> OutlineDocumentSet:
    """Append a new submission file holding one initial node."""
    if initial_node is None:
        initial_node = OutlineNode(title=DEFAULT_CHAPTER_TITLE, description=DEFAULT_DESCRIPTION)

    new_file = OutlineFile(name=name, items=(initial_node,))
    logger.debug("outline_tree.file_added", name=name, file_count=len(doc.files) + 1)
    return replace(doc, files=doc.files + (new_file,))


def remove_file(doc: OutlineDocumentSet, file_index: int) -> OutlineDocumentSet:
    """Remove the file at file_index.

    A document always keeps at least one file: removing the only file
    returns ``doc`` itself, unchanged.
    """
    _get_file(doc, file_index)

    if len(doc.files) == 1:
        logger.info("outline_tree.remove_file_rejected", file_index=file_index)
        return doc

    files = doc.files[:file_index] + doc.files[file_index + 1 :]
    logger.debug("outline_tree.file_removed", file_index=file_index, file_count=len(files))
    return replace(doc, files=files)


def fill_empty_files(doc: OutlineDocumentSet) -> OutlineDocumentSet:
    """Give every file without items a placeholder root chapter.

    Files that already have items are shared; returns ``doc`` itself when
    no file is empty.
    """
    empty = [i for i, f in enumerate(doc.files) if not f.items]
    if not empty:
        return doc

    placeholder = OutlineNode(title=DEFAULT_CHAPTER_TITLE, description=DEFAULT_DESCRIPTION)
    files = tuple(
        replace(f, items=(placeholder,)) if i in empty else f for i, f in enumerate(doc.files)
    )
    logger.warning("outline_tree.empty_files_filled", file_indices=empty)
    return replace(doc, files=files)


def rename_file(doc: OutlineDocumentSet, file_index: int, name: str) -> OutlineDocumentSet:
    """Change the display name of a file."""
    file = _get_file(doc, file_index)
    return _replace_file(doc, file_index, replace(file, name=name))


def set_summary(doc: OutlineDocumentSet, summary: str) -> OutlineDocumentSet:
    return replace(doc, summary=summary)


def iter_nodes(doc: OutlineDocumentSet) -> Iterator[tuple[int, Path, OutlineNode]]:
    """Walk every node in pre-order.

    Yields:
        Tuples of (file_index, path, node)
    """

    def _walk(nodes: tuple[OutlineNode, ...], prefix: Path, file_index: int):
        for i, node in enumerate(nodes):
            path = prefix + (i,)
            yield file_index, path, node
            yield from _walk(node.children, path, file_index)

    for file_index, file in enumerate(doc.files):
        yield from _walk(file.items, (), file_index)
