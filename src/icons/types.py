"""Shared DTOs for the icon conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Callable

from PIL import Image

FORMAT_ICNS = "icns"
FORMAT_ICO = "ico"
FORMAT_SET = "set"


def output_extension(output_format: str) -> str:
    """Return the single-file extension used to look up and pass through sources."""

    if output_format == FORMAT_SET:
        return ".png"
    return f".{output_format}"


@dataclass(frozen=True)
class IconArtifact:
    """A produced (or passed through) icon file.

    ``size`` is ``0`` when the file is meant to be used verbatim.
    """

    file: Path
    size: int = 0

    def to_mapping(self) -> dict[str, object]:
        return {"file": str(self.file), "size": self.size}


@dataclass(frozen=True)
class ResolvedSource:
    path: Path
    is_dir: bool
    has_target_extension: bool = False


MasterLoader = Callable[[Path, int], Image.Image]


@dataclass
class InputInfo:
    """Working state of a single conversion run."""

    min_size: int
    max_size: int = 0
    max_path: Path | None = None
    size_to_path: dict[int, Path] = field(default_factory=dict)
    _master: Image.Image | None = field(default=None, repr=False, compare=False)
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def set_master(self, size: int, path: Path, image: Image.Image | None = None) -> None:
        with self._lock:
            self.max_size = size
            self.max_path = path
            self._master = image

    def master_image(self, loader: MasterLoader) -> Image.Image:
        """Return the master image, decoding it through ``loader`` at most once."""

        with self._lock:
            if self._master is None:
                if self.max_path is None:
                    raise RuntimeError("master image path has not been set")
                self._master = loader(self.max_path, self.min_size)
            return self._master


__all__ = [
    "FORMAT_ICNS",
    "FORMAT_ICO",
    "FORMAT_SET",
    "IconArtifact",
    "InputInfo",
    "MasterLoader",
    "ResolvedSource",
    "output_extension",
]
