"""Collect pre-rendered icon sizes from a directory."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from core.errors import IconIoError, ImageDecodeError, SourceNotFoundError
from icons.types import IconArtifact
from utils.image_io import read_image_size

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".bmp",
    ".webp",
    ".tiff",
}

# icon_16x16.png, icon_16x16@2x.png, 256x256.png
_DIMENSIONS_RE = re.compile(r"(\d+)x(\d+)(?:@(\d+)x)?")
# 256.png
_PLAIN_SIZE_RE = re.compile(r"^(\d+)$")


def size_from_name(name: str) -> int | None:
    """Return the pixel size encoded in a file stem, or ``None`` when absent."""
    matches = _DIMENSIONS_RE.findall(name)
    if matches:
        width, height, scale = matches[-1]
        if width != height:
            return None
        return int(width) * (int(scale) if scale else 1)
    plain = _PLAIN_SIZE_RE.match(name)
    if plain:
        return int(plain.group(1))
    return None


def _size_from_header(path: Path) -> int | None:
    try:
        width, height = read_image_size(path)
    except ImageDecodeError as exc:
        logger.warning("Ignoring unreadable icon file %s: %s", path, exc)
        return None
    if width != height:
        logger.debug("Ignoring non-square %dx%d image %s", width, height, path)
        return None
    return width


def collect_icons(directory: str | Path) -> list[IconArtifact]:
    """Return one file per distinct size found in ``directory``, ascending by size.

    Sizes always come from the image header. A size in the file name that
    disagrees with the header is logged and ignored. When several files share
    a size the first by name wins.
    """
    root = Path(directory)
    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise IconIoError("list icon directory", root) from exc

    by_size: dict[int, Path] = {}
    for entry in entries:
        if entry.name.startswith(".") or entry.suffix.lower() not in DEFAULT_EXTENSIONS:
            continue
        if not entry.is_file():
            continue
        size = _size_from_header(entry)
        if size is None or size <= 0:
            continue
        named = size_from_name(entry.stem)
        if named is not None and named != size:
            logger.warning("%s is named as %dpx but is %dpx; using %dpx", entry, named, size, size)
        if size in by_size:
            logger.debug("Size %d already provided by %s; skipping %s", size, by_size[size], entry)
            continue
        by_size[size] = entry

    if not by_size:
        raise SourceNotFoundError([str(root)])

    icons = [IconArtifact(file=by_size[size], size=size) for size in sorted(by_size)]
    logger.debug("Collected sizes %s from %s", [icon.size for icon in icons], root)
    return icons


__all__ = ["DEFAULT_EXTENSIONS", "collect_icons", "size_from_name"]
