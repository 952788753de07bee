"""Configuration for PayGuard."""

from .settings import (
    ErasureSettings,
    ExportSettings,
    RetentionSettings,
    Settings,
    get_settings,
)

__all__ = [
    "ErasureSettings",
    "ExportSettings",
    "RetentionSettings",
    "Settings",
    "get_settings",
]
