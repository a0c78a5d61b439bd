"""Image decode/encode helpers."""

from __future__ import annotations

import os
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from linespace.errors import DecodeError, EncodeError, UnsupportedFormatError
from linespace.files import get_ext


# Codec chosen by file extension; Pillow is told not to sniff other formats.
DECODERS: dict[str, str] = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
}

WHITE = (255, 255, 255)


def flatten_to_rgb(image: Image.Image) -> Image.Image:
    """Return an RGB copy of ``image``, compositing transparency onto white."""
    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not has_alpha:
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (*WHITE, 255))
    return Image.alpha_composite(background, rgba).convert("RGB")


def load_image(image_path: str | Path) -> Image.Image:
    """Decode an image file into an RGB image.

    GIF files yield their first frame.

    Raises:
        UnsupportedFormatError: If the extension has no decoder. The file is
            not opened in that case.
        DecodeError: If the file cannot be read or decoded.
    """
    path = Path(image_path)
    ext = get_ext(path.name)
    image_format = DECODERS.get(ext)
    if image_format is None:
        raise UnsupportedFormatError(f"Unsupported file format : {ext or '(none)'}")

    try:
        with Image.open(path, formats=[image_format]) as image:
            image.load()
            return flatten_to_rgb(image)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Cannot decode {path.name} as {image_format}: {exc}") from exc


def save_jpeg(image: Image.Image, dest_dir: str | Path, filename: str, quality: int) -> Path:
    """Encode ``image`` as JPEG into ``dest_dir/filename``, creating the directory.

    Raises:
        EncodeError: If the directory cannot be created or the file cannot be
            written.
    """
    try:
        os.makedirs(dest_dir, mode=0o777, exist_ok=True)
    except OSError as exc:
        raise EncodeError(f"Cannot create destination directory {dest_dir}: {exc}") from exc

    out_path = Path(dest_dir) / filename
    rgb = image if image.mode in ("RGB", "L") else image.convert("RGB")
    try:
        rgb.save(out_path, "JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Cannot write {out_path}: {exc}") from exc
    return out_path


__all__ = ["DECODERS", "flatten_to_rgb", "load_image", "save_jpeg"]
