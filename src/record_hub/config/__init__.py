"""Configuration management for RecordHub.

Usage:
    >>> from record_hub.config import get_settings
    >>> settings = get_settings()
    >>> settings.relational_config().url
"""

from record_hub.config.settings import (
    KeyValueConfig,
    RelationalConfig,
    Settings,
    get_settings,
)

__all__ = [
    "KeyValueConfig",
    "RelationalConfig",
    "Settings",
    "get_settings",
]
