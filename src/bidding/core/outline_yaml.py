"""YAML export/import of an outline for manual review.

An exported outline can be edited in any text editor and loaded back.
Loading always goes through normalize(), so a hand-edited file with
missing fields or emptied files still yields a valid outline.
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml

from bidding.core.normalizer import CanonicalDirectory, OutlineMode, classify_raw, normalize
from bidding.core.outline_model import OutlineDocumentSet

logger = structlog.get_logger(__name__)

YAML_HEADER = (
    "# 投标文件目录 - 编辑后保存\n"
    "# 可增删 files / items / children 条目\n"
    "# contentFormat 留空时将按章节标题自动填充模板\n\n"
)


def dump_outline_yaml(doc: OutlineDocumentSet) -> str:
    """Serialize an outline to commented YAML text."""
    body = yaml.dump(
        doc.to_dict(),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )
    return YAML_HEADER + body


class OutlineYamlError(ValueError):
    """Raised when reviewed YAML does not hold an outline with ``files``."""

    pass


def load_outline_yaml(
    text: str, mode: OutlineMode = "directory", strict: bool = False
) -> OutlineDocumentSet:
    """Parse edited YAML text into a canonical outline.

    Args:
        text: YAML text
        mode: "directory" or "format"
        strict: Reject documents that would only normalize to the
            skeleton (empty, a list, no ``files`` key)

    Raises:
        yaml.YAMLError: If the text is not valid YAML
        OutlineYamlError: If strict and the document has no ``files``
    """
    raw = {"documentDirectory": yaml.safe_load(text)}
    if strict and not isinstance(classify_raw(raw), CanonicalDirectory):
        raise OutlineYamlError("YAML 中没有 files 目录结构，未应用")
    return normalize(raw, mode)


def write_outline_yaml(doc: OutlineDocumentSet, path: Path) -> Path:
    """Write an outline to a YAML file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_outline_yaml(doc), encoding="utf-8")
    logger.info("outline_yaml.written", path=str(path))
    return path


def read_outline_yaml(
    path: Path, mode: OutlineMode = "directory", strict: bool = False
) -> OutlineDocumentSet:
    """Read a YAML file written by write_outline_yaml (possibly edited).

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If the file is not valid YAML
        OutlineYamlError: If strict and the document has no ``files``
    """
    if not path.exists():
        raise FileNotFoundError(f"YAML 文件不存在: {path}")

    doc = load_outline_yaml(path.read_text(encoding="utf-8"), mode, strict=strict)
    logger.info("outline_yaml.read", path=str(path), nodes=doc.count_nodes())
    return doc
