"""Image input/output utilities built atop Pillow."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional

from PIL import Image, UnidentifiedImageError
from PIL.Image import DecompressionBombError

from core.errors import IconIoError, ImageDecodeError, ImageSizeError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Pillow のデフォルト (~1.79e8 px) より広めに許容する
DEFAULT_BOMB_CAP = 350_000_000

RESAMPLING_FILTERS = {
    "lanczos": Image.Resampling.LANCZOS,
    "bicubic": Image.Resampling.BICUBIC,
    "bilinear": Image.Resampling.BILINEAR,
    "nearest": Image.Resampling.NEAREST,
}


def resample_filter(name: str | None) -> Image.Resampling:
    """Map a configured filter name to Pillow's enum, defaulting to LANCZOS."""
    if not name:
        return Image.Resampling.LANCZOS
    return RESAMPLING_FILTERS.get(name.lower(), Image.Resampling.LANCZOS)


def is_png(data: bytes) -> bool:
    return data[: len(PNG_SIGNATURE)] == PNG_SIGNATURE


def _open_source(p: Path, context: str) -> BinaryIO:
    try:
        return p.open("rb")
    except OSError as exc:
        raise IconIoError(context, p) from exc


def load_image(
    source: str | Path,
    *,
    min_size: int = 0,
    bomb_pixel_cap: Optional[int] = DEFAULT_BOMB_CAP,
) -> Image.Image:
    """Decode ``source`` fully into an RGBA image.

    Raises :class:`IconIoError` when the file cannot be opened and
    :class:`ImageDecodeError` when Pillow cannot decode it.
    Raises :class:`ImageSizeError` when either dimension is below ``min_size``.
    The file handle is closed before returning.
    """
    p = Path(source)
    old_cap = Image.MAX_IMAGE_PIXELS
    if bomb_pixel_cap is not None:
        Image.MAX_IMAGE_PIXELS = int(bomb_pixel_cap)
    try:
        with _open_source(p, "read image") as handle:
            with Image.open(handle) as img:
                img.load()
                image = img.convert("RGBA") if img.mode != "RGBA" else img.copy()
    except (UnidentifiedImageError, DecompressionBombError) as exc:
        raise ImageDecodeError(p, str(exc)) from exc
    except OSError as exc:
        # 壊れた PNG などは OSError で上がってくる
        raise ImageDecodeError(p, str(exc)) from exc
    finally:
        Image.MAX_IMAGE_PIXELS = old_cap

    width, height = image.size
    if width < min_size or height < min_size:
        raise ImageSizeError(p, min_size, min(width, height))
    logger.debug("Loaded %s (%dx%d)", p, width, height)
    return image


def read_image_size(source: str | Path) -> tuple[int, int]:
    """Return ``(width, height)`` from the image header without decoding pixels."""
    p = Path(source)
    with _open_source(p, "read image header") as handle:
        try:
            with Image.open(handle) as img:
                return img.size
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageDecodeError(p, str(exc)) from exc


def resize_image(
    image: Image.Image,
    size: tuple[int, int],
    *,
    resample: Image.Resampling | None = None,
) -> Image.Image:
    """Return a copy of ``image`` resized to exactly ``size``."""
    if image.size == size:
        return image.copy()
    return image.resize(size, resample if resample is not None else Image.Resampling.LANCZOS)


def encode_png(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def png_payload(path: str | Path) -> bytes:
    """Return PNG bytes for ``path``, reusing the stored bytes verbatim when already PNG."""
    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as exc:
        raise IconIoError("read icon file", p) from exc
    if is_png(data):
        return data
    logger.debug("Re-encoding %s as PNG", p)
    return encode_png(load_image(p))


__all__ = [
    "DEFAULT_BOMB_CAP",
    "PNG_SIGNATURE",
    "RESAMPLING_FILTERS",
    "encode_png",
    "is_png",
    "load_image",
    "png_payload",
    "read_image_size",
    "resample_filter",
    "resize_image",
]
