"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from bidding.config.app_config import load_app_config

    config = load_app_config()
    db_path = config.storage.db_path
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from bidding.core.editing_session import CANCEL_POLICIES
from bidding.core.normalizer import SKELETON_SUMMARIES

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

DEFAULT_DB_PATH = "db/bidding.db"
DEFAULT_MODE = "directory"
DEFAULT_CANCEL_POLICY = "restore"


@dataclass
class StorageConfig:
    """Where project records are persisted."""

    db_path: str = DEFAULT_DB_PATH


@dataclass
class EditorConfig:
    """Defaults for the outline review editor."""

    default_mode: str = DEFAULT_MODE
    cancel_policy: str = DEFAULT_CANCEL_POLICY


@dataclass
class AppConfig:
    """Application-wide configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "storage": {"db_path": DEFAULT_DB_PATH},
        "editor": {
            "default_mode": DEFAULT_MODE,
            "cancel_policy": DEFAULT_CANCEL_POLICY,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    storage_data = data.get("storage") or {}
    storage = StorageConfig(db_path=str(storage_data.get("db_path", DEFAULT_DB_PATH)))

    editor_data = data.get("editor") or {}
    mode = editor_data.get("default_mode", DEFAULT_MODE)
    if mode not in SKELETON_SUMMARIES:
        logger.warning("app_config.invalid_mode", value=mode, fallback=DEFAULT_MODE)
        mode = DEFAULT_MODE

    policy = editor_data.get("cancel_policy", DEFAULT_CANCEL_POLICY)
    if policy not in CANCEL_POLICIES:
        logger.warning("app_config.invalid_cancel_policy", value=policy, fallback=DEFAULT_CANCEL_POLICY)
        policy = DEFAULT_CANCEL_POLICY

    return AppConfig(
        storage=storage,
        editor=EditorConfig(default_mode=mode, cancel_policy=policy),
    )


def load_app_config(force_reload: bool = False, config_file: Path | None = None) -> AppConfig:
    """Load application config, with defaults when no file exists.

    Args:
        force_reload: If True, ignore cached config and reload from file.
        config_file: Alternate config path (defaults to CONFIG_FILE)

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    path = config_file or CONFIG_FILE
    if path.exists():
        logger.debug("app_config.loading", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("app_config.using_defaults")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
