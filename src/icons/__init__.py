"""Icon conversion: ICNS encoding and source resolution for app icons."""

from core.errors import (
    IconError,
    IconIoError,
    ImageDecodeError,
    ImageSizeError,
    SourceNotFoundError,
    UnsupportedFormatError,
)

from .pipeline import IconConverter, convert_icon
from .types import FORMAT_ICNS, FORMAT_ICO, FORMAT_SET, IconArtifact

__all__ = [
    "FORMAT_ICNS",
    "FORMAT_ICO",
    "FORMAT_SET",
    "IconArtifact",
    "IconConverter",
    "IconError",
    "IconIoError",
    "ImageDecodeError",
    "ImageSizeError",
    "SourceNotFoundError",
    "UnsupportedFormatError",
    "convert_icon",
]
