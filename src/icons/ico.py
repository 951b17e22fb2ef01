"""Windows ICO helpers: header sniffing and writing through Pillow."""

from __future__ import annotations

import io
import logging
import struct
from pathlib import Path

from PIL import Image

from core.errors import IconIoError
from utils.fs import write_atomic

logger = logging.getLogger(__name__)

_ICONDIR = struct.Struct("<HHH")
_ICONDIRENTRY_SIZE = 16


def is_ico(head: bytes) -> bool:
    """Return True when ``head`` starts with an ICONDIR header of type icon."""
    if len(head) < _ICONDIR.size:
        return False
    reserved, kind, count = _ICONDIR.unpack_from(head, 0)
    return reserved == 0 and kind == 1 and count > 0


def ico_sizes(head: bytes) -> list[tuple[int, int]]:
    """List the ``(width, height)`` pairs declared by the directory entries in ``head``.

    A zero byte in an entry means 256 pixels. Entries that do not fit in
    ``head`` are ignored.
    """
    if not is_ico(head):
        return []
    _, _, count = _ICONDIR.unpack_from(head, 0)
    sizes: list[tuple[int, int]] = []
    for index in range(count):
        offset = _ICONDIR.size + index * _ICONDIRENTRY_SIZE
        if offset + _ICONDIRENTRY_SIZE > len(head):
            break
        width, height = head[offset], head[offset + 1]
        sizes.append((width or 256, height or 256))
    return sizes


def write_ico(image: Image.Image, path: Path) -> None:
    """Encode ``image`` as a single-resolution ICO and write it to ``path``."""
    buf = io.BytesIO()
    try:
        image.save(buf, format="ICO", sizes=[image.size])
    except (OSError, ValueError) as exc:
        raise IconIoError("encode ICO", path) from exc
    write_atomic(path, buf.getvalue())
    logger.debug("Wrote %dx%d ICO to %s", image.width, image.height, path)


__all__ = ["ico_sizes", "is_ico", "write_ico"]
