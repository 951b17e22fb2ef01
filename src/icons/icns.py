"""Apple ICNS container encoding and PNG set extraction.

An ICNS file is a big-endian, length-prefixed sequence of tagged chunks::

    "icns" | u32 total length | (tag | u32 chunk length | payload)*

Both length fields include their own 8-byte header. Every payload written by
:func:`encode_icns` is PNG data; sizes that have several OSType aliases get the
same payload written once per alias.
"""

from __future__ import annotations

import io
import logging
import shutil
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from PIL import Image, UnidentifiedImageError

from core.errors import IconError, IconIoError, ImageDecodeError
from icons.catalog import ICNS_SIZES, tags_for
from icons.types import IconArtifact
from utils.fs import create_output_dir, write_atomic
from utils.image_io import encode_png, is_png

logger = logging.getLogger(__name__)

ICNS_MAGIC = b"icns"
_HEADER = struct.Struct(">4sI")


@dataclass(frozen=True)
class IcnsChunk:
    tag: str
    payload: bytes


def is_icns(head: bytes) -> bool:
    return head[:4] == ICNS_MAGIC


def encode_icns(sizes: Iterable[int], payload_for: Callable[[int], bytes]) -> bytes:
    """Build a complete ICNS container in memory.

    ``sizes`` must be an ascending subsequence of :data:`ICNS_SIZES`;
    ``payload_for`` is called exactly once per size. Any exception it raises
    propagates and no container is produced.
    """
    ordered = list(sizes)
    previous = 0
    for size in ordered:
        if size not in ICNS_SIZES:
            raise ValueError(f"{size} is not a canonical ICNS size")
        if size <= previous:
            raise ValueError(f"ICNS sizes must be strictly ascending: {ordered}")
        previous = size

    body = bytearray()
    for size in ordered:
        payload = payload_for(size)
        for tag in tags_for(size):
            body += _HEADER.pack(tag.encode("ascii"), len(payload) + 8)
            body += payload

    return _HEADER.pack(ICNS_MAGIC, len(body) + 8) + bytes(body)


def read_icns(data: bytes, source: str | Path = "<memory>") -> list[IcnsChunk]:
    """Split an ICNS container into its chunks, validating every length field."""
    if len(data) < _HEADER.size:
        raise ImageDecodeError(source, "truncated ICNS header")
    magic, total = _HEADER.unpack_from(data, 0)
    if magic != ICNS_MAGIC:
        raise ImageDecodeError(source, "missing ICNS magic")
    if total < _HEADER.size or total > len(data):
        raise ImageDecodeError(source, f"ICNS length {total} does not match file size {len(data)}")

    chunks: list[IcnsChunk] = []
    offset = _HEADER.size
    while offset < total:
        if offset + _HEADER.size > total:
            raise ImageDecodeError(source, f"truncated chunk header at offset {offset}")
        raw_tag, length = _HEADER.unpack_from(data, offset)
        if length < _HEADER.size or offset + length > total:
            raise ImageDecodeError(source, f"invalid chunk length {length} at offset {offset}")
        chunks.append(
            IcnsChunk(
                tag=raw_tag.decode("latin-1"),
                payload=bytes(data[offset + _HEADER.size : offset + length]),
            )
        )
        offset += length
    return chunks


def extract_icns_to_png_set(path: str | Path, output_dir: str | Path | None = None) -> list[IconArtifact]:
    """Write one PNG per distinct pixel size stored in the ICNS file at ``path``.

    Chunks Pillow cannot decode on their own (legacy RLE bitmaps, masks, table
    of contents) are skipped. Returns artifacts sorted by ascending size.
    """
    source = Path(path)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise IconIoError("read ICNS file", source) from exc

    by_size: dict[int, bytes] = {}
    for chunk in read_icns(data, source):
        try:
            with Image.open(io.BytesIO(chunk.payload)) as img:
                img.load()
                width, height = img.size
                png = chunk.payload if is_png(chunk.payload) else encode_png(img)
        except (UnidentifiedImageError, OSError, ValueError):
            logger.debug("Skipping non-image ICNS chunk %r in %s", chunk.tag, source)
            continue
        if width != height:
            logger.warning("Skipping non-square %dx%d chunk %r in %s", width, height, chunk.tag, source)
            continue
        by_size.setdefault(width, png)

    if not by_size:
        raise ImageDecodeError(source, "no decodable images in ICNS container")

    target_dir = create_output_dir("icons-", output_dir)
    artifacts: list[IconArtifact] = []
    try:
        for size in sorted(by_size):
            out_path = target_dir / f"icon_{size}x{size}.png"
            write_atomic(out_path, by_size[size])
            artifacts.append(IconArtifact(file=out_path, size=size))
    except IconError:
        shutil.rmtree(target_dir, ignore_errors=True)
        raise
    logger.info("Extracted %d PNG files from %s into %s", len(artifacts), source, target_dir)
    return artifacts


__all__ = [
    "ICNS_MAGIC",
    "IcnsChunk",
    "encode_icns",
    "extract_icns_to_png_set",
    "is_icns",
    "read_icns",
]
