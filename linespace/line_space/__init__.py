"""Line-space normalization.

Scanned pages often carry uneven vertical gaps between text lines. This
package removes part of each gap so the page approaches a target aspect
ratio, without ever clipping rows that hold content:

  1. ``get_line_ranges`` classifies rows as background or content and groups
     them into maximal runs.
  2. ``allocate_target_heights`` decides how many rows each run keeps.
  3. ``compose_line_ranges`` stacks the kept rows into the output image.

``normalize_line_space`` runs the three steps on one image.
"""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from linespace.errors import LineSpaceError

from .allocate import MAX_GROWTH_ITERATIONS, Allocation, allocate_target_heights, shrink_range
from .compose import compose_line_ranges
from .ranges import LineRange, count_dark_pixels, dark_pixel_cutoff, get_line_ranges


@dataclass(frozen=True, slots=True)
class LineSpaceOptions:
    width_ratio: float
    height_ratio: float
    line_space_scale: float
    min_space: int
    max_remove: int
    darkness_threshold: int
    empty_line_threshold: float


@dataclass(slots=True)
class LineSpaceResult:
    image: Image.Image
    ranges: list[LineRange]
    allocation: Allocation


def plan_line_space(image: Image.Image, options: LineSpaceOptions) -> tuple[list[LineRange], Allocation]:
    """Segment ``image`` and allocate target heights without composing."""
    ranges = get_line_ranges(image, options.darkness_threshold, options.empty_line_threshold)
    allocation = allocate_target_heights(
        ranges,
        image.width,
        width_ratio=options.width_ratio,
        height_ratio=options.height_ratio,
        line_space_scale=options.line_space_scale,
        min_space=options.min_space,
        max_remove=options.max_remove,
    )
    return ranges, allocation


def normalize_line_space(image: Image.Image, options: LineSpaceOptions) -> LineSpaceResult:
    """Remove vertical space between lines of ``image``.

    Raises:
        LineSpaceError: If every row would be removed.
    """
    ranges, allocation = plan_line_space(image, options)
    if allocation.output_height <= 0:
        raise LineSpaceError(
            f"line-space normalization removed all {image.height} rows of the image"
        )
    composed = compose_line_ranges(image, ranges, allocation.output_height)
    return LineSpaceResult(image=composed, ranges=ranges, allocation=allocation)


__all__ = [
    "MAX_GROWTH_ITERATIONS",
    "Allocation",
    "LineRange",
    "LineSpaceOptions",
    "LineSpaceResult",
    "allocate_target_heights",
    "compose_line_ranges",
    "count_dark_pixels",
    "dark_pixel_cutoff",
    "get_line_ranges",
    "normalize_line_space",
    "plan_line_space",
    "shrink_range",
]
