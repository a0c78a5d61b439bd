"""Row classification: split an image into background and content bands."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from PIL import Image

from linespace.utils.image.io import flatten_to_rgb


# Rows classified per block to bound the size of the brightness buffer.
_ROW_BLOCK = 256

# 8-bit samples widened to the 16-bit scale of ``darkness_threshold``.
_WIDEN_16 = 257


@dataclass(slots=True)
class LineRange:
    """An inclusive run of rows ``[start, end]`` sharing one classification."""

    start: int
    end: int
    is_background: bool
    target_height: int = field(default=-1)

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Empty line range [{self.start}, {self.end}]")
        if self.target_height < 0:
            self.target_height = self.height

    @property
    def height(self) -> int:
        return self.end - self.start + 1

    @property
    def removed(self) -> int:
        """Rows currently cut from this range."""
        return self.height - self.target_height


def dark_pixel_cutoff(width: int, empty_line_threshold: float) -> int:
    """Dark pixels a row needs before it counts as content.

    Thresholds below 1 are a fraction of the image width, others an absolute
    count. Fractional results are truncated.
    """
    if empty_line_threshold < 1:
        return int(width * empty_line_threshold)
    return int(empty_line_threshold)


def count_dark_pixels(image: Image.Image, darkness_threshold: int) -> np.ndarray:
    """Per-row count of pixels whose ``(R+G+B)//3`` is below the threshold.

    Brightness is computed on the 16-bit channel scale (0..65535), so
    ``darkness_threshold`` is on that scale too.
    """
    rgb = image if image.mode == "RGB" else flatten_to_rgb(image)
    pixels = np.asarray(rgb, dtype=np.uint8)
    height = pixels.shape[0]
    counts = np.zeros(height, dtype=np.int64)
    for top in range(0, height, _ROW_BLOCK):
        block = pixels[top : top + _ROW_BLOCK]
        brightness = block.sum(axis=2, dtype=np.uint32) * _WIDEN_16 // 3
        counts[top : top + block.shape[0]] = np.count_nonzero(
            brightness < darkness_threshold, axis=1
        )
    return counts


def get_line_ranges(
    image: Image.Image,
    darkness_threshold: int,
    empty_line_threshold: float,
) -> list[LineRange]:
    """Partition the rows of ``image`` into maximal background/content runs.

    A row is content once its dark-pixel count reaches the cutoff from
    ``dark_pixel_cutoff``; it needs at least one dark pixel either way.
    Every row belongs to exactly one range, ranges are in top-to-bottom order
    and neighbours always differ in classification.
    """
    if image.height == 0:
        return []

    cutoff = max(1, dark_pixel_cutoff(image.width, empty_line_threshold))
    background = count_dark_pixels(image, darkness_threshold) < cutoff

    changes = np.flatnonzero(background[1:] != background[:-1]) + 1
    starts = np.concatenate(([0], changes))
    ends = np.concatenate((changes - 1, [image.height - 1]))
    return [
        LineRange(start=int(start), end=int(end), is_background=bool(background[start]))
        for start, end in zip(starts, ends, strict=True)
    ]


__all__ = ["LineRange", "count_dark_pixels", "dark_pixel_cutoff", "get_line_ranges"]
