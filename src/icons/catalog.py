"""Canonical ICNS sizes and the OSType tags stored for each of them."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

ICNS_SIZES: tuple[int, ...] = (16, 32, 64, 128, 256, 512, 1024)

# 旧 OSType (10.5 以前で認識されるもの) も同じ画像で重複して書き込む
SIZE_TO_TAGS: Mapping[int, tuple[str, ...]] = MappingProxyType(
    {
        16: ("icp4",),
        32: ("icp5", "ic11"),
        64: ("icp6", "ic12"),
        128: ("ic07",),
        256: ("ic08", "ic13"),
        512: ("ic09", "ic14"),
        1024: ("ic10",),
    }
)

TAG_TO_SIZE: Mapping[str, int] = MappingProxyType(
    {tag: size for size, tags in SIZE_TO_TAGS.items() for tag in tags}
)


def tags_for(size: int) -> tuple[str, ...]:
    """Return the ordered OSType tags that must carry the ``size`` image."""
    return SIZE_TO_TAGS[size]


def sizes_up_to(max_size: int) -> list[int]:
    """Return the canonical sizes not larger than ``max_size``, ascending."""
    return [size for size in ICNS_SIZES if size <= max_size]


__all__ = ["ICNS_SIZES", "SIZE_TO_TAGS", "TAG_TO_SIZE", "sizes_up_to", "tags_for"]
