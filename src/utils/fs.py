"""Filesystem helpers shared across icon modules."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from core.errors import IconIoError

HEAD_SIZE = 512


def read_head(path: Path, size: int = HEAD_SIZE) -> bytes:
    """Return at most ``size`` leading bytes of ``path``."""
    try:
        with Path(path).open("rb") as handle:
            return handle.read(size)
    except OSError as exc:
        raise IconIoError("read file header", path) from exc


def create_output_file(suffix: str, directory: str | Path | None = None) -> Path:
    """Reserve a fresh, empty output file ending with ``suffix`` and return its path."""
    if directory is not None:
        Path(directory).mkdir(parents=True, exist_ok=True)
    try:
        fd, name = tempfile.mkstemp(suffix=suffix, dir=None if directory is None else str(directory))
    except OSError as exc:
        raise IconIoError("create output file", Path(directory or tempfile.gettempdir())) from exc
    os.close(fd)
    return Path(name)


def create_output_dir(prefix: str, directory: str | Path | None = None) -> Path:
    if directory is not None:
        Path(directory).mkdir(parents=True, exist_ok=True)
    try:
        return Path(tempfile.mkdtemp(prefix=prefix, dir=None if directory is None else str(directory)))
    except OSError as exc:
        raise IconIoError("create output directory", Path(directory or tempfile.gettempdir())) from exc


def write_atomic(path: Path, data: bytes) -> None:
    """Write ``data`` to a sibling temp file, then replace ``path`` in one step."""
    target = Path(path)
    tmp_path = target.with_suffix(target.suffix + ".tmp")
    try:
        with tmp_path.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise IconIoError("write output file", target) from exc


def discard(path: Path) -> None:
    """Remove a partially written output, ignoring files that are already gone."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        pass


__all__ = [
    "HEAD_SIZE",
    "create_output_dir",
    "create_output_file",
    "discard",
    "read_head",
    "write_atomic",
]
