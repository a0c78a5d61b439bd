from __future__ import annotations

from PIL import Image

from linespace.utils.log_utils import logger


def fit_size(
    width: int, height: int, max_width: int, max_height: int
) -> tuple[int, int]:
    """Size with the aspect ratio of ``width x height`` that fits the box.

    Only sizes larger than the box are scaled down; smaller ones are kept. A
    non-positive limit leaves that axis unconstrained.
    """
    if width <= 0 or height <= 0:
        return width, height

    scales: list[float] = []
    if max_width > 0:
        scales.append(max_width / width)
    if max_height > 0:
        scales.append(max_height / height)
    # Only scale if the image is larger than the max dimensions.
    if not scales or min(scales) >= 1:
        return width, height

    scale = min(scales)
    new_width = max(1, int(round(width * scale)))
    new_height = max(1, int(round(height * scale)))
    if max_width > 0:
        new_width = min(new_width, max_width)
    if max_height > 0:
        new_height = min(new_height, max_height)
    return new_width, new_height


def resize_image_to_fit(image: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Resize to fit inside (``max_width``, ``max_height``) maintaining aspect ratio.

    Images that already fit are returned unchanged; the result never exceeds
    the box and is never cropped.
    """
    new_size = fit_size(image.width, image.height, max_width, max_height)
    if new_size == image.size:
        return image
    return image.resize(new_size, resample=Image.Resampling.LANCZOS)


def rotate_image(
    image: Image.Image,
    angle: float,
    fillcolor: tuple[int, int, int] = (255, 255, 255),
) -> Image.Image:
    """Rotate counter-clockwise by ``angle`` degrees, expanding the canvas.

    Area uncovered by the rotation is filled with ``fillcolor``.
    """
    if angle == 0.0:
        return image

    if abs(angle) > 3.0:
        logger.debug(f"Rotating page by {angle:.1f} degrees")

    return image.rotate(
        angle, resample=Image.Resampling.BICUBIC, expand=True, fillcolor=fillcolor
    )


__all__ = ["fit_size", "resize_image_to_fit", "rotate_image"]
