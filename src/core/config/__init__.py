"""Configuration domain primitives for icon-converter."""

from __future__ import annotations

from .paths import AppPaths
from .schema import ConverterSettings
from .service import SettingsService

_APP_PATHS = AppPaths()


def configure(app_paths: AppPaths) -> None:
    """Replace the default :class:`AppPaths` used by the command line."""

    global _APP_PATHS
    _APP_PATHS = app_paths


def get_app_paths() -> AppPaths:
    return _APP_PATHS


__all__ = [
    "AppPaths",
    "ConverterSettings",
    "SettingsService",
    "configure",
    "get_app_paths",
]
