"""Configuration package for the bidding outline tool."""

from bidding.config.app_config import (
    AppConfig,
    EditorConfig,
    StorageConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "EditorConfig",
    "StorageConfig",
    "clear_config_cache",
    "load_app_config",
]
