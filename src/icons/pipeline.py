"""Resolve an icon source and convert it to ICNS, ICO or a PNG set."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from PIL import Image

from core.config import ConverterSettings
from core.errors import IconError, ImageSizeError, UnsupportedFormatError
from icons.catalog import ICNS_SIZES, sizes_up_to
from icons.collect import collect_icons
from icons.icns import encode_icns, extract_icns_to_png_set, is_icns
from icons.ico import ico_sizes, is_ico, write_ico
from icons.resolver import resolve_source
from icons.types import (
    FORMAT_ICNS,
    FORMAT_ICO,
    FORMAT_SET,
    IconArtifact,
    InputInfo,
    ResolvedSource,
    output_extension,
)
from utils.fs import create_output_file, discard, read_head, write_atomic
from utils.image_io import (
    PNG_SIGNATURE,
    encode_png,
    is_png,
    load_image,
    png_payload,
    read_image_size,
    resample_filter,
    resize_image,
)

logger = logging.getLogger(__name__)


def _load_checked(path: Path, min_size: int) -> Image.Image:
    return load_image(path, min_size=min_size)


def _load_unchecked(path: Path, _min_size: int) -> Image.Image:
    return load_image(path)


class IconConverter:
    """Run conversions with a fixed set of :class:`ConverterSettings`."""

    def __init__(self, settings: ConverterSettings | None = None) -> None:
        self.settings = settings or ConverterSettings()
        self._resample = resample_filter(self.settings.resample)

    def convert(
        self,
        sources: Sequence[str],
        roots: Sequence[str | Path],
        output_format: str,
    ) -> list[IconArtifact]:
        fmt = output_format.strip().lower()
        resolved = resolve_source(sources, roots, output_extension(fmt))
        info = InputInfo(min_size=self.settings.min_size_for(fmt))
        logger.info("Resolved icon source %s (dir=%s) for format %s", resolved.path, resolved.is_dir, fmt)

        if resolved.has_target_extension:
            return self._passthrough(resolved, fmt, info.min_size)

        if resolved.is_dir:
            icons = collect_icons(resolved.path)
            if fmt == FORMAT_SET:
                return icons
            for icon in icons:
                info.size_to_path[icon.size] = icon.file
            largest = icons[-1]
            info.set_master(largest.size, largest.file)
        else:
            if fmt == FORMAT_SET and self._is_icns_file(resolved.path):
                return extract_icns_to_png_set(resolved.path, self.settings.output_dir)
            self._load_single_image(resolved.path, fmt, info)

        if fmt == FORMAT_ICNS:
            return [self._write_icns(info)]
        if fmt == FORMAT_ICO:
            return [self._write_ico(info)]
        raise UnsupportedFormatError(output_format, resolved.path)

    def _passthrough(self, resolved: ResolvedSource, fmt: str, min_size: int) -> list[IconArtifact]:
        # 完成済みの icns はそのまま使う (サイズ検証なし)
        if fmt != FORMAT_ICNS:
            self._validate_size(resolved.path, min_size)
        logger.info("Using %s as is", resolved.path)
        return [IconArtifact(file=resolved.path)]

    @staticmethod
    def _validate_size(path: Path, min_size: int) -> None:
        head = read_head(path)
        if is_ico(head):
            declared = ico_sizes(head)
            if any(w >= min_size and h >= min_size for w, h in declared):
                return
            actual = max((min(w, h) for w, h in declared), default=0)
        else:
            width, height = read_image_size(path)
            if width >= min_size and height >= min_size:
                return
            actual = min(width, height)
        raise ImageSizeError(path, min_size, actual)

    @staticmethod
    def _is_icns_file(path: Path) -> bool:
        return path.suffix.lower() == ".icns" or is_icns(read_head(path, 4))

    def _load_single_image(self, path: Path, fmt: str, info: InputInfo) -> None:
        master = load_image(path, min_size=info.min_size)
        cap = self.settings.ico_max_size
        if fmt == FORMAT_ICO and master.width > cap:
            master = resize_image(master, (cap, cap), resample=self._resample)
            info.set_master(master.width, path, master)
            return
        info.set_master(master.width, path, master)
        # PNG 以外はメモリ上の master から作る (二重デコードを避ける)
        if master.width == master.height and is_png(read_head(path, len(PNG_SIGNATURE))):
            info.size_to_path[master.width] = path

    def _write_icns(self, info: InputInfo) -> IconArtifact:
        sizes = sizes_up_to(info.max_size)
        if not sizes:
            raise ImageSizeError(info.max_path or Path(), ICNS_SIZES[0], info.max_size)

        def payload_for(size: int) -> bytes:
            existing = info.size_to_path.get(size)
            if existing is not None:
                logger.debug("ICNS %dpx: reusing %s", size, existing)
                return png_payload(existing)
            master = info.master_image(_load_unchecked)
            logger.debug("ICNS %dpx: resizing %dx%d master", size, master.width, master.height)
            return encode_png(resize_image(master, (size, size), resample=self._resample))

        data = encode_icns(sizes, payload_for)
        out_path = create_output_file(".icns", self.settings.output_dir)
        try:
            write_atomic(out_path, data)
        except IconError:
            discard(out_path)
            raise
        logger.info("Wrote ICNS %s with sizes %s", out_path, sizes)
        return IconArtifact(file=out_path)

    def _write_ico(self, info: InputInfo) -> IconArtifact:
        master = info.master_image(_load_checked)
        cap = self.settings.ico_max_size
        if master.width > cap or master.height > cap:
            master = resize_image(master, (cap, cap), resample=self._resample)
        out_path = create_output_file(".ico", self.settings.output_dir)
        try:
            write_ico(master, out_path)
        except IconError:
            discard(out_path)
            raise
        logger.info("Wrote ICO %s (%dx%d)", out_path, master.width, master.height)
        return IconArtifact(file=out_path)


def convert_icon(
    sources: Sequence[str],
    roots: Sequence[str | Path],
    output_format: str,
    *,
    settings: ConverterSettings | None = None,
) -> list[IconArtifact]:
    """Convert the first resolvable icon source to ``output_format``.

    ``output_format`` is ``"icns"``, ``"ico"``, ``"set"`` or a raster
    extension such as ``"png"`` (accepted only as a passthrough). Raises an
    :class:`~core.errors.IconError` subclass on failure; no partial output
    is left behind.
    """
    return IconConverter(settings).convert(sources, roots, output_format)


__all__ = ["IconConverter", "convert_icon"]
