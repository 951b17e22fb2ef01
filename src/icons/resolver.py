"""Locate an icon source among candidate names and search roots."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Sequence

from core.errors import IconIoError, SourceNotFoundError
from icons.types import ResolvedSource

logger = logging.getLogger(__name__)

_MISSING_ERRORS = (FileNotFoundError, NotADirectoryError)


def _stat(path: Path) -> os.stat_result | None:
    try:
        return path.stat()
    except _MISSING_ERRORS:
        return None
    except OSError as exc:
        raise IconIoError("stat icon source", path) from exc


def resolve_source_or_none(
    candidate: str,
    roots: Sequence[str | Path],
    *,
    target_extension: str = "",
) -> ResolvedSource | None:
    """Return the first existing location of ``candidate``, or ``None`` when absent.

    Absolute candidates are checked as-is; relative ones are joined onto each
    root in order. Errors other than "does not exist" raise :class:`IconIoError`.
    """
    if os.path.isabs(candidate):
        locations = [Path(os.path.normpath(candidate))]
    else:
        locations = [Path(root) / candidate for root in roots]

    for location in locations:
        info = _stat(location)
        if info is None:
            logger.debug("Tried %s: not found", location)
            continue
        return ResolvedSource(
            path=location,
            is_dir=stat.S_ISDIR(info.st_mode),
            has_target_extension=bool(target_extension) and location.name.endswith(target_extension),
        )
    return None


def fallback_candidate(candidate: str, extension: str) -> str:
    """Return the name retried with ``extension`` when ``candidate`` is missing."""
    if extension == ".png" and candidate == "icons":
        return "icon.png"
    return candidate + extension


def resolve_source(
    candidates: Sequence[str],
    roots: Sequence[str | Path],
    fallback_extension: str = "",
) -> ResolvedSource:
    """Resolve the first existing candidate, retrying each with ``fallback_extension``.

    Raises :class:`SourceNotFoundError` naming every candidate when nothing
    matches under any root.
    """
    for candidate in candidates:
        resolved = resolve_source_or_none(candidate, roots, target_extension=fallback_extension)
        if resolved is not None:
            return resolved

        if fallback_extension:
            resolved = resolve_source_or_none(
                fallback_candidate(candidate, fallback_extension),
                roots,
                target_extension=fallback_extension,
            )
            if resolved is not None:
                return resolved

    raise SourceNotFoundError(candidates)


__all__ = ["fallback_candidate", "resolve_source", "resolve_source_or_none"]
