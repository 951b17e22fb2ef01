"""End-to-end tests for :func:`icons.convert_icon`."""

from __future__ import annotations

import io
import struct
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

import icons.pipeline as pipeline_module
from core.config import ConverterSettings
from core.errors import (
    ImageDecodeError,
    ImageSizeError,
    SourceNotFoundError,
    UnsupportedFormatError,
)
from icons import convert_icon
from icons.catalog import tags_for
from icons.icns import encode_icns, read_icns
from icons.ico import ico_sizes
from icons.pipeline import IconConverter
from icons.types import InputInfo
from utils.image_io import encode_png, is_png


@pytest.fixture
def settings(out_dir: Path) -> ConverterSettings:
    return ConverterSettings(output_dir=str(out_dir))


def _payloads_by_tag(path: Path) -> dict[str, bytes]:
    return {chunk.tag: chunk.payload for chunk in read_icns(path.read_bytes())}


def _png_size(payload: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(payload)) as img:
        return img.size


def test_icns_from_single_image_contains_every_alias(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    source = make_image("icon.png", 1024)

    [artifact] = convert_icon(["icon.png"], [tmp_path], "icns", settings=settings)

    assert artifact.size == 0
    assert artifact.file.suffix == ".icns"
    data = artifact.file.read_bytes()
    assert struct.unpack(">I", data[4:8])[0] == len(data)

    chunks = read_icns(data)
    for size in (16, 32, 64, 128, 256, 512, 1024):
        payloads = [chunk.payload for chunk in chunks if chunk.tag in tags_for(size)]
        assert len(payloads) == len(tags_for(size))
        assert len(set(payloads)) == 1
        assert _png_size(payloads[0]) == (size, size)
    assert _payloads_by_tag(artifact.file)["ic10"] == source.read_bytes()


def test_icns_never_upscales(tmp_path: Path, make_image: Callable[..., Path], out_dir: Path) -> None:
    make_image("icon.png", 300)
    settings = ConverterSettings(icns_min_size=256, output_dir=str(out_dir))

    [artifact] = convert_icon(["icon.png"], [tmp_path], "icns", settings=settings)

    tags = set(_payloads_by_tag(artifact.file))
    assert tags == {"icp4", "icp5", "ic11", "icp6", "ic12", "ic07", "ic08", "ic13"}


def test_icns_passthrough_skips_size_check(tmp_path: Path, settings: ConverterSettings) -> None:
    source = tmp_path / "app.icns"
    source.write_bytes(b"not really an icns")

    artifacts = convert_icon(["app"], [tmp_path], "icns", settings=settings)

    assert [(artifact.file, artifact.size) for artifact in artifacts] == [(source, 0)]


def test_ico_caps_master_at_256(
    tmp_path: Path,
    make_image: Callable[..., Path],
    settings: ConverterSettings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_image("icon.png", 1024)
    seen: list[tuple[int, int]] = []
    real_write_ico = pipeline_module.write_ico

    def spy(image: Image.Image, path: Path) -> None:
        seen.append(image.size)
        real_write_ico(image, path)

    monkeypatch.setattr(pipeline_module, "write_ico", spy)

    [artifact] = convert_icon(["icon.png"], [tmp_path], "ico", settings=settings)

    assert seen == [(256, 256)]
    assert artifact.file.suffix == ".ico"
    assert ico_sizes(artifact.file.read_bytes()[:512]) == [(256, 256)]


def test_ico_from_directory_uses_largest_capped(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("set/16.png", 16)
    make_image("set/512.png", 512)

    [artifact] = convert_icon(["set"], [tmp_path], "ico", settings=settings)

    with Image.open(artifact.file) as img:
        assert img.size == (256, 256)


def test_directory_sizes_are_reused_and_missing_sizes_resized(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    stored = {size: make_image(f"set/{size}.png", size) for size in (16, 32, 256)}
    master = make_image("master.png", 1024)
    info = InputInfo(min_size=512, size_to_path=dict(stored))
    info.set_master(1024, master)

    artifact = IconConverter(settings)._write_icns(info)

    payloads = _payloads_by_tag(artifact.file)
    for size, path in stored.items():
        for tag in tags_for(size):
            assert payloads[tag] == path.read_bytes()
    for size in (64, 128, 512, 1024):
        for tag in tags_for(size):
            assert _png_size(payloads[tag]) == (size, size)


def test_directory_to_icns_end_to_end(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    stored = {size: make_image(f"set/icon_{size}x{size}.png", size) for size in (16, 32, 256, 1024)}

    [artifact] = convert_icon(["set"], [tmp_path], "icns", settings=settings)

    payloads = _payloads_by_tag(artifact.file)
    assert payloads["icp4"] == stored[16].read_bytes()
    assert payloads["ic10"] == stored[1024].read_bytes()
    assert _png_size(payloads["ic12"]) == (64, 64)
    assert _png_size(payloads["ic14"]) == (512, 512)


def test_directory_stored_jpeg_is_reencoded(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("set/16.jpg", 16, fmt="JPEG")
    make_image("set/32.png", 32)

    [artifact] = convert_icon(["set"], [tmp_path], "icns", settings=settings)

    payload = _payloads_by_tag(artifact.file)["icp4"]
    assert is_png(payload)
    assert _png_size(payload) == (16, 16)


def test_master_is_decoded_once(
    tmp_path: Path,
    make_image: Callable[..., Path],
    settings: ConverterSettings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_image("set/1024.png", 1024)
    calls: list[Path] = []
    real_load_image = pipeline_module.load_image

    def counting(path, **kwargs):
        calls.append(Path(path))
        return real_load_image(path, **kwargs)

    monkeypatch.setattr(pipeline_module, "load_image", counting)

    convert_icon(["set"], [tmp_path], "icns", settings=settings)

    assert calls == [tmp_path / "set" / "1024.png"]


def test_single_jpeg_master_is_reencoded_as_png(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("photo.jpg", 512, fmt="JPEG")

    [artifact] = convert_icon(["photo.jpg"], [tmp_path], "icns", settings=settings)

    payloads = _payloads_by_tag(artifact.file)
    assert "ic10" not in payloads
    assert is_png(payloads["ic09"])
    assert payloads["ic09"] == payloads["ic14"]


def test_small_source_rejected_for_ico(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings, out_dir: Path
) -> None:
    source = make_image("small.png", 128)

    with pytest.raises(ImageSizeError) as excinfo:
        convert_icon(["small.png"], [tmp_path], "ico", settings=settings)

    assert (excinfo.value.path, excinfo.value.required, excinfo.value.actual) == (source, 256, 128)
    assert excinfo.value.code == "ERR_ICON_TOO_SMALL"
    assert list(out_dir.iterdir()) == []


def test_small_source_rejected_for_icns(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("icon.png", 256)

    with pytest.raises(ImageSizeError) as excinfo:
        convert_icon(["icon.png"], [tmp_path], "icns", settings=settings)

    assert excinfo.value.required == 512


def test_set_from_directory(tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings) -> None:
    for size in (256, 16, 64):
        make_image(f"icons/{size}x{size}.png", size)

    artifacts = convert_icon(["icons"], [tmp_path], "set", settings=settings)

    assert [(artifact.file.name, artifact.size) for artifact in artifacts] == [
        ("16x16.png", 16),
        ("64x64.png", 64),
        ("256x256.png", 256),
    ]


def test_set_from_icns_extracts_pngs(tmp_path: Path, settings: ConverterSettings, out_dir: Path) -> None:
    pngs = {size: encode_png(Image.new("RGBA", (size, size))) for size in (32, 256)}
    (tmp_path / "app.icns").write_bytes(encode_icns(sorted(pngs), pngs.__getitem__))

    artifacts = convert_icon(["app.icns"], [tmp_path], "set", settings=settings)

    assert [artifact.size for artifact in artifacts] == [32, 256]
    assert all(out_dir in artifact.file.parents for artifact in artifacts)


def test_png_passthrough_validates_size(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    big = make_image("big.png", 256)
    make_image("tiny.png", (300, 64))

    assert [artifact.file for artifact in convert_icon(["big"], [tmp_path], "png", settings=settings)] == [big]
    with pytest.raises(ImageSizeError) as excinfo:
        convert_icon(["tiny.png"], [tmp_path], "set", settings=settings)
    assert excinfo.value.actual == 64


def test_ico_passthrough_checks_declared_sizes(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    Image.new("RGBA", (256, 256)).save(tmp_path / "good.ico", format="ICO", sizes=[(32, 32), (256, 256)])
    Image.new("RGBA", (64, 64)).save(tmp_path / "bad.ico", format="ICO", sizes=[(32, 32), (64, 64)])

    [artifact] = convert_icon(["good"], [tmp_path], "ico", settings=settings)
    assert artifact.file == tmp_path / "good.ico"

    with pytest.raises(ImageSizeError) as excinfo:
        convert_icon(["bad.ico"], [tmp_path], "ico", settings=settings)
    assert excinfo.value.actual == 64


def test_unknown_format_fails_after_resolution(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    source = make_image("icon.png", 512)

    with pytest.raises(UnsupportedFormatError) as excinfo:
        convert_icon(["icon.png"], [tmp_path], "bmp", settings=settings)

    assert excinfo.value.requested == "bmp"
    assert excinfo.value.path == source


def test_set_from_single_raster_is_unsupported(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("icon.jpg", 512, fmt="JPEG")

    with pytest.raises(UnsupportedFormatError):
        convert_icon(["icon.jpg"], [tmp_path], "set", settings=settings)


def test_missing_source(tmp_path: Path, settings: ConverterSettings) -> None:
    with pytest.raises(SourceNotFoundError):
        convert_icon(["nope", "icons"], [tmp_path], "icns", settings=settings)


def test_undecodable_source(tmp_path: Path, settings: ConverterSettings, out_dir: Path) -> None:
    (tmp_path / "icon.jpg").write_bytes(b"definitely not a jpeg")

    with pytest.raises(ImageDecodeError) as excinfo:
        convert_icon(["icon.jpg"], [tmp_path], "icns", settings=settings)

    assert excinfo.value.__cause__ is not None
    assert list(out_dir.iterdir()) == []


def test_icns_with_no_canonical_size_fails(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("set/8.png", 8)

    with pytest.raises(ImageSizeError):
        convert_icon(["set"], [tmp_path], "icns", settings=settings)


def test_misnamed_directory_file_is_not_upscaled(
    tmp_path: Path, make_image: Callable[..., Path], settings: ConverterSettings
) -> None:
    make_image("set/icon_1024x1024.png", 64)
    make_image("set/icon_16x16.png", 16)

    [artifact] = convert_icon(["set"], [tmp_path], "icns", settings=settings)

    payloads = _payloads_by_tag(artifact.file)
    assert set(payloads) == {"icp4", "icp5", "ic11", "icp6", "ic12"}
    for size in (16, 32, 64):
        for tag in tags_for(size):
            assert _png_size(payloads[tag]) == (size, size)


def test_single_jpeg_source_is_decoded_once(
    tmp_path: Path,
    make_image: Callable[..., Path],
    settings: ConverterSettings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    make_image("photo.jpg", 512, fmt="JPEG")
    payload_calls: list[Path] = []
    real_png_payload = pipeline_module.png_payload

    def spy(path):
        payload_calls.append(Path(path))
        return real_png_payload(path)

    monkeypatch.setattr(pipeline_module, "png_payload", spy)

    [artifact] = convert_icon(["photo.jpg"], [tmp_path], "icns", settings=settings)

    assert payload_calls == []
    assert _png_size(_payloads_by_tag(artifact.file)["ic09"]) == (512, 512)
