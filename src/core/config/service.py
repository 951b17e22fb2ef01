"""Services for loading and persisting converter configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .paths import AppPaths
from .schema import ConverterSettings

logger = logging.getLogger(__name__)


class SettingsService:
    """Load, validate and persist :class:`ConverterSettings`."""

    def __init__(
        self,
        app_paths: AppPaths,
        *,
        filename: str = "config.yaml",
        path: Path | None = None,
    ) -> None:
        self._app_paths = app_paths
        self._filename = filename
        self._path = path

    @property
    def config_path(self) -> Path:
        """Path to the configuration file."""

        path = self._path or self._app_paths.config_path(self._filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def load(self) -> ConverterSettings:
        """Load the configuration from disk with graceful fallbacks."""

        path = self.config_path
        if not path.exists():
            return ConverterSettings()

        try:
            raw_text = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Unable to read settings from %s: %s", path, exc)
            return ConverterSettings()

        try:
            raw_data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            logger.warning("Invalid YAML in %s: %s", path, exc)
            return ConverterSettings()

        return ConverterSettings.from_mapping(raw_data)

    def save(self, settings: ConverterSettings) -> None:
        """Persist the configuration to disk."""

        path = self.config_path
        try:
            path.write_text(yaml.safe_dump(settings.to_mapping(), sort_keys=False), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write settings to %s: %s", path, exc)
            raise


__all__ = ["SettingsService"]
