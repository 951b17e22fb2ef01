"""Pydantic schemas for converter configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_ICNS_MIN_SIZE = 512
DEFAULT_MIN_SIZE = 256
DEFAULT_ICO_MAX_SIZE = 256
DEFAULT_RESAMPLE = "lanczos"
RESAMPLE_CHOICES = ("lanczos", "bicubic", "bilinear", "nearest")


def _normalise_path(value: str | Path) -> str:
    return str(Path(value).expanduser())


def _coerce_size(value: Any, default: int) -> int:
    try:
        size = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, size)


class ConverterSettings(BaseModel):
    """Validated configuration used by the conversion pipeline."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    icns_min_size: int = DEFAULT_ICNS_MIN_SIZE
    min_size: int = DEFAULT_MIN_SIZE
    ico_max_size: int = DEFAULT_ICO_MAX_SIZE
    output_dir: str | None = None
    resample: str = DEFAULT_RESAMPLE

    @field_validator("icns_min_size", mode="before")
    @classmethod
    def _coerce_icns_min_size(cls, value: Any) -> int:
        return _coerce_size(value, DEFAULT_ICNS_MIN_SIZE)

    @field_validator("min_size", mode="before")
    @classmethod
    def _coerce_min_size(cls, value: Any) -> int:
        return _coerce_size(value, DEFAULT_MIN_SIZE)

    @field_validator("ico_max_size", mode="before")
    @classmethod
    def _coerce_ico_max_size(cls, value: Any) -> int:
        # ICO の画像エントリは 256px が上限
        return min(_coerce_size(value, DEFAULT_ICO_MAX_SIZE), DEFAULT_ICO_MAX_SIZE)

    @field_validator("output_dir", mode="before")
    @classmethod
    def _normalise_output_dir(cls, value: Any) -> str | None:
        if value in (None, ""):
            return None
        return _normalise_path(str(value))

    @field_validator("resample", mode="before")
    @classmethod
    def _normalise_resample(cls, value: Any) -> str:
        name = str(value or "").strip().lower()
        if name not in RESAMPLE_CHOICES:
            return DEFAULT_RESAMPLE
        return name

    def min_size_for(self, output_format: str) -> int:
        """Return the minimum source dimension required for ``output_format``."""

        if output_format == "icns":
            return self.icns_min_size
        return self.min_size

    def to_mapping(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ConverterSettings":
        if not isinstance(data, Mapping):
            data = {}
        return cls.model_validate(data)


__all__ = [
    "DEFAULT_ICNS_MIN_SIZE",
    "DEFAULT_ICO_MAX_SIZE",
    "DEFAULT_MIN_SIZE",
    "DEFAULT_RESAMPLE",
    "RESAMPLE_CHOICES",
    "ConverterSettings",
]
