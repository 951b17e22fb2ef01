"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from core.config import AppPaths, configure


class _DummyDirs:
    def __init__(self, root: Path) -> None:
        self.user_data_dir = str(root / "data")
        self.user_config_dir = str(root / "config")


def make_app_paths(root: Path) -> AppPaths:
    def factory(_: str) -> _DummyDirs:
        return _DummyDirs(root)

    return AppPaths(env={}, platform_dirs_factory=factory)


def write_image(path: Path, size: tuple[int, int], *, fmt: str = "PNG", color=(200, 30, 30, 255)) -> Path:
    mode = "RGB" if fmt in ("JPEG", "BMP") else "RGBA"
    image = Image.new(mode, size, color=color[:3] if mode == "RGB" else color)
    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format=fmt)
    return path


@pytest.fixture(autouse=True, scope="session")
def isolated_app_paths(tmp_path_factory: pytest.TempPathFactory) -> AppPaths:
    app_paths = make_app_paths(tmp_path_factory.mktemp("app"))
    configure(app_paths)
    return app_paths


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str, size: int | tuple[int, int], **kwargs) -> Path:
        dims = (size, size) if isinstance(size, int) else size
        return write_image(tmp_path / name, dims, **kwargs)

    return _make


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    path = tmp_path / "out"
    path.mkdir()
    return path
