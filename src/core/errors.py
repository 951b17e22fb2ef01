"""Exception hierarchy shared by the icon conversion packages."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class IconError(Exception):
    """Base class for every failure surfaced by :func:`icons.convert_icon`."""

    code = "ERR_ICON"


class SourceNotFoundError(IconError):
    code = "ERR_ICON_NOT_FOUND"

    def __init__(self, candidates: Sequence[str]) -> None:
        self.candidates = list(candidates)
        super().__init__(f'icon source "{", ".join(self.candidates)}" not found')


class ImageSizeError(IconError):
    """Raised when an image or container is below the required minimum size."""

    code = "ERR_ICON_TOO_SMALL"

    def __init__(self, path: str | Path, required: int, actual: int) -> None:
        self.path = Path(path)
        self.required = required
        self.actual = actual
        super().__init__(f"image {self.path} must be at least {required}x{required} (got {actual})")


class IconIoError(IconError):
    code = "ERR_ICON_IO"

    def __init__(self, context: str, path: str | Path) -> None:
        self.context = context
        self.path = Path(path)
        super().__init__(f"{context} failed for {self.path}")


class ImageDecodeError(IconError):
    code = "ERR_ICON_UNKNOWN_FORMAT"

    def __init__(self, path: str | Path, reason: str | None = None) -> None:
        self.path = Path(path)
        message = f"cannot decode image {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnsupportedFormatError(IconError):
    code = "ERR_ICON_UNSUPPORTED_FORMAT"

    def __init__(self, requested: str, path: str | Path | None = None) -> None:
        self.requested = requested
        self.path = Path(path) if path is not None else None
        message = f"unknown output format {requested}"
        if self.path is not None:
            message = f"{message} (source {self.path})"
        super().__init__(message)


__all__ = [
    "IconError",
    "IconIoError",
    "ImageDecodeError",
    "ImageSizeError",
    "SourceNotFoundError",
    "UnsupportedFormatError",
]
