from __future__ import annotations

from pathlib import Path

from PIL import Image
import pytest

from linespace.errors import DecodeError, EncodeError, UnsupportedFormatError
from linespace.files import get_base, get_ext, is_supported_image, list_images
from linespace.utils.image import (
    fit_size,
    flatten_to_rgb,
    load_image,
    resize_image_to_fit,
    rotate_image,
    save_jpeg,
)
from linespace.utils.log_utils import logger


@pytest.mark.parametrize(
    ("size", "box", "expected"),
    [
        ((400, 200), (100, 100), (100, 50)),
        ((50, 100), (200, 300), (50, 100)),
        ((50, 100), (-1, 80), (40, 80)),
        ((400, 200), (-1, 100), (200, 100)),
        ((400, 200), (100, 0), (100, 50)),
        ((400, 200), (-1, -1), (400, 200)),
    ],
)
def test_fit_size(size, box, expected) -> None:
    assert fit_size(*size, *box) == expected


def test_resize_image_to_fit_returns_same_image_when_unchanged() -> None:
    image = Image.new("RGB", (40, 20), "white")
    assert resize_image_to_fit(image, -1, -1) is image
    assert resize_image_to_fit(image, 40, 20) is image


def test_resize_image_to_fit_never_upscales() -> None:
    image = Image.new("RGB", (50, 100), "white")
    assert resize_image_to_fit(image, 200, 300) is image
    assert resize_image_to_fit(image, 50, -1) is image


def test_resize_image_to_fit_scales_within_box() -> None:
    image = Image.new("RGB", (300, 100), "white")
    resized = resize_image_to_fit(image, 60, 60)
    assert resized.size == (60, 20)


def test_rotate_image_expands_canvas_and_fills_white() -> None:
    image = Image.new("RGB", (40, 20), "black")

    assert rotate_image(image, 0.0) is image
    assert rotate_image(image, 90).size == (20, 40)

    tilted = rotate_image(image, 45)
    assert tilted.width > 40 and tilted.height > 20
    assert tilted.getpixel((0, 0)) == (255, 255, 255)


def test_flatten_to_rgb_composites_on_white() -> None:
    image = Image.new("RGBA", (4, 4), (0, 0, 0, 0))
    image.putpixel((0, 0), (0, 0, 0, 255))

    flat = flatten_to_rgb(image)

    assert flat.mode == "RGB"
    assert flat.getpixel((0, 0)) == (0, 0, 0)
    assert flat.getpixel((3, 3)) == (255, 255, 255)


def test_load_image_rejects_unsupported_extension(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedFormatError):
        load_image(tmp_path / "scan.bmp")


def test_load_image_reports_corrupt_file(tmp_path: Path) -> None:
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"definitely not a jpeg")
    with pytest.raises(DecodeError):
        load_image(broken)


def test_load_image_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DecodeError):
        load_image(tmp_path / "missing.png")


def test_load_image_uses_extension_decoder(tmp_path: Path) -> None:
    misnamed = tmp_path / "page.png"
    Image.new("RGB", (8, 8), "white").save(misnamed, "JPEG")
    with pytest.raises(DecodeError):
        load_image(misnamed)


def test_load_image_returns_rgb(tmp_path: Path) -> None:
    png = tmp_path / "page.PNG"
    Image.new("RGBA", (8, 6), (10, 20, 30, 255)).save(png, "PNG")
    gif = tmp_path / "page.gif"
    Image.new("L", (5, 5), 0).save(gif, "GIF")

    loaded_png = load_image(png)
    loaded_gif = load_image(gif)

    assert loaded_png.mode == "RGB"
    assert loaded_png.size == (8, 6)
    assert loaded_png.getpixel((0, 0)) == (10, 20, 30)
    assert loaded_gif.mode == "RGB"
    assert loaded_gif.size == (5, 5)


def test_save_jpeg_creates_destination(tmp_path: Path) -> None:
    dest = tmp_path / "out" / "nested"
    image = Image.new("RGB", (12, 7), "white")

    written = save_jpeg(image, dest, "page.jpg", 90)

    assert written == dest / "page.jpg"
    with Image.open(written) as result:
        assert result.format == "JPEG"
        assert result.size == (12, 7)


def test_save_jpeg_reports_unusable_destination(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(EncodeError):
        save_jpeg(Image.new("RGB", (2, 2)), blocker, "page.jpg", 90)


def test_filename_helpers() -> None:
    assert get_ext("Scan.JPEG") == ".jpeg"
    assert get_ext("README") == ""
    assert get_base("dir/Scan_01.png") == "Scan_01"
    assert is_supported_image("a.GIF")
    assert not is_supported_image("a.bmp")


def test_list_images_filters_and_sorts(tmp_path: Path) -> None:
    for name in ["c.png", "a.jpg", "notes.txt", "b.JPEG", "d.bmp"]:
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "sub.png").mkdir()

    assert list_images(tmp_path) == ["a.jpg", "b.JPEG", "c.png"]


def test_list_images_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(OSError):
        list_images(tmp_path / "missing")


def test_list_images_logs_skipped_files_at_info(tmp_path: Path) -> None:
    (tmp_path / "a.png").write_bytes(b"")
    (tmp_path / "notes.txt").write_text("skip me")
    records: list[tuple[str, str]] = []
    handler_id = logger.add(
        lambda message: records.append((message.record["level"].name, message.record["message"])),
        level="INFO",
    )
    try:
        assert list_images(tmp_path) == ["a.png"]
    finally:
        logger.remove(handler_id)

    assert any(level == "INFO" and "notes.txt" in text for level, text in records)
