"""Command line entry point: ``python -m icons`` / ``icon-converter``."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Sequence

from core.config import AppPaths, ConverterSettings, SettingsService, get_app_paths
from core.errors import IconError
from icons.pipeline import convert_icon
from utils.env import log_level_from_env

logger = logging.getLogger(__name__)


def setup_logging(app_paths: AppPaths | None = None) -> None:
    """Configure logging to stderr and a rotating application log file.

    stdout is reserved for the JSON result.
    """

    level = log_level_from_env()
    root_logger = logging.getLogger()

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # pragma: no cover - best effort cleanup
            pass

    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    log_dir = (app_paths or get_app_paths()).log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / "app.log",
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icon-converter",
        description="Convert an image, icon container or directory of sizes to ICNS, ICO or a PNG set.",
    )
    parser.add_argument(
        "-i",
        "--input",
        dest="inputs",
        action="append",
        required=True,
        help="Icon source candidate; may be given several times, first match wins.",
    )
    parser.add_argument(
        "-r",
        "--root",
        dest="roots",
        action="append",
        default=None,
        help="Directory to resolve relative inputs against (default: current directory).",
    )
    parser.add_argument("-f", "--format", default="icns", help="icns, ico, set or a raster extension.")
    parser.add_argument("-o", "--out", default=None, help="Directory for generated files (default: <data dir>/output).")
    parser.add_argument("--config", default=None, help="YAML settings file.")
    return parser


def _load_settings(config: str | None, out: str | None) -> ConverterSettings:
    app_paths = get_app_paths()
    if config:
        settings = SettingsService(app_paths, path=Path(config).expanduser()).load()
    else:
        settings = SettingsService(app_paths).load()
    if out:
        settings = settings.model_copy(update={"output_dir": str(Path(out).expanduser())})
    elif settings.output_dir is None:
        settings = settings.model_copy(update={"output_dir": str(app_paths.output_dir())})
    return settings


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    settings = _load_settings(args.config, args.out)
    roots = args.roots or [os.getcwd()]
    try:
        icons = convert_icon(args.inputs, roots, args.format, settings=settings)
    except IconError as exc:
        logger.error("Icon conversion failed: %s", exc, exc_info=exc.__cause__ is not None)
        json.dump({"error": str(exc), "errorCode": exc.code}, sys.stdout)
        sys.stdout.write("\n")
        return 1

    json.dump({"icons": [icon.to_mapping() for icon in icons]}, sys.stdout)
    sys.stdout.write("\n")
    return 0


__all__ = ["build_parser", "main", "setup_logging"]
