"""Application configuration utilities."""

from .settings import DEFAULT_MATCH_THRESHOLD, DEFAULT_START_DAY, Settings, get_settings

__all__ = [
    "DEFAULT_MATCH_THRESHOLD",
    "DEFAULT_START_DAY",
    "Settings",
    "get_settings",
]
