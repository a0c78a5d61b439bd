from __future__ import annotations

from collections.abc import Sequence

from PIL import Image

from .ranges import LineRange


def compose_line_ranges(
    image: Image.Image,
    ranges: Sequence[LineRange],
    output_height: int,
) -> Image.Image:
    """Stack the top ``target_height`` rows of each range into a new image.

    Ranges are copied top to bottom, so everything below a shrunk range moves
    up by the rows it lost. The result has the source width and mode.
    """
    width = image.width
    dest = Image.new(image.mode, (width, output_height), "white")
    dest_y = 0
    for line_range in ranges:
        rows = min(line_range.target_height, line_range.height)
        if rows <= 0:
            continue
        band = image.crop((0, line_range.start, width, line_range.start + rows))
        dest.paste(band, (0, dest_y))
        dest_y += rows
    return dest


__all__ = ["compose_line_ranges"]
