"""Directory listing and filename helpers."""

from __future__ import annotations

import os
from pathlib import Path

from linespace.utils.log_utils import logger


SUPPORTED_IMAGE_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".gif",
}


def get_ext(filename: str) -> str:
    """Lower-cased extension including the dot, or an empty string."""
    return os.path.splitext(filename)[1].lower()


def get_base(filename: str) -> str:
    """File name without directory and extension."""
    return os.path.splitext(os.path.basename(filename))[0]


def is_supported_image(filename: str) -> bool:
    return get_ext(filename) in SUPPORTED_IMAGE_EXTENSIONS


def list_images(image_dir: str | Path) -> list[str]:
    """Return the supported image file names in ``image_dir``, sorted by name.

    Only the directory itself is listed, not its subdirectories. Files with
    other extensions are skipped.

    Raises:
        OSError: If the directory cannot be listed.
    """
    collected: list[str] = []
    with os.scandir(image_dir) as entries:
        for entry in entries:
            if not entry.is_file():
                continue
            if is_supported_image(entry.name):
                collected.append(entry.name)
            else:
                logger.info(f"Skipping {entry.name}: unsupported extension '{get_ext(entry.name)}'")
    return sorted(collected)


__all__ = [
    "SUPPORTED_IMAGE_EXTENSIONS",
    "get_base",
    "get_ext",
    "is_supported_image",
    "list_images",
]
