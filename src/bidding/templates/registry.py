"""Template Registry - Load chapter boilerplate from packaged files.

Templates live next to this module as ``library/<template_id>.md`` and are
returned verbatim, placeholder tokens such as ``[项目名称]`` included.

Usage:
    from bidding.templates.registry import get_template

    text = get_template("bid_letter")
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "library"


def _get_template_uncached(template_id: str) -> str:
    """Load raw template from file without caching.

    Raises:
        FileNotFoundError: If template file doesn't exist
    """
    file_path = TEMPLATES_DIR / f"{template_id}.md"
    if not file_path.exists():
        raise FileNotFoundError(f"模板不存在: {template_id} (路径 {file_path})")

    return file_path.read_text(encoding="utf-8").rstrip("\n")


@lru_cache(maxsize=32)
def _get_cached_template(template_id: str) -> str:
    return _get_template_uncached(template_id)


def get_template(template_id: str, use_cache: bool = True) -> str:
    """Load template text by id.

    Args:
        template_id: File stem under the library directory, e.g. "bid_letter"
        use_cache: Whether to use cached version (default True)

    Returns:
        Template text with trailing newlines stripped

    Raises:
        FileNotFoundError: If template file doesn't exist
    """
    if use_cache:
        return _get_cached_template(template_id)
    return _get_template_uncached(template_id)


def list_templates() -> list[str]:
    """List all available template ids, sorted."""
    if not TEMPLATES_DIR.exists():
        logger.warning("templates.dir_not_found", path=str(TEMPLATES_DIR))
        return []

    return sorted(path.stem for path in TEMPLATES_DIR.glob("*.md"))


def clear_cache() -> None:
    """Clear the template cache.

    Useful for testing or when templates are modified at runtime.
    """
    _get_cached_template.cache_clear()
