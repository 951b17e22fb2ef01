"""Path resolution helpers for icon-converter configuration and output."""

from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from platformdirs import PlatformDirs


class AppPaths:
    """Resolve application directories with support for dependency injection."""

    def __init__(
        self,
        env: Mapping[str, str] | None = None,
        *,
        app_name: str = "icon-converter",
        env_var: str = "ICONS_DATA_DIR",
        platform_dirs_factory: Callable[[str], PlatformDirs] | None = None,
    ) -> None:
        self._env = MappingProxyType(dict(env) if env is not None else dict(os.environ))
        self._app_name = app_name
        self._env_var = env_var
        self._platform_dirs_factory = platform_dirs_factory or self._default_platform_dirs

    @staticmethod
    def _default_platform_dirs(app_name: str) -> PlatformDirs:
        return PlatformDirs(appname=app_name, appauthor=False, roaming=True)

    def _platform_dirs(self) -> PlatformDirs:
        return self._platform_dirs_factory(self._app_name)

    def data_dir(self) -> Path:
        """Return the directory used to persist application data."""

        override = self._env.get(self._env_var)
        if override:
            return Path(override).expanduser()
        return Path(self._platform_dirs().user_data_dir)

    def config_dir(self) -> Path:
        return Path(self._platform_dirs().user_config_dir)

    def config_path(self, filename: str = "config.yaml") -> Path:
        """Return the full path to the configuration file."""

        return self.config_dir() / filename

    def output_dir(self) -> Path:
        """Return the default directory for conversion output."""

        return self.data_dir() / "output"

    def log_dir(self) -> Path:
        return self.data_dir() / "logs"


__all__ = ["AppPaths"]
