from collections.abc import Sequence

from PIL import Image, ImageDraw

from linespace.line_space import LineRange


BACKGROUND_FILL = (80, 160, 255, 70)
REMOVED_FILL = (255, 64, 64, 110)
BOUNDARY_COLOR = (255, 0, 0, 255)


def draw_line_ranges(image: Image.Image, ranges: Sequence[LineRange]) -> Image.Image:
    """Overlay the line ranges onto an RGB copy of the image.

    Background ranges are tinted blue. The rows a range would lose (below its
    ``target_height``) are tinted red, and a line marks the top of each range.
    """
    base = image.convert("RGBA")
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    right = base.width - 1

    for line_range in ranges:
        if line_range.is_background:
            draw.rectangle([0, line_range.start, right, line_range.end], fill=BACKGROUND_FILL)
            if line_range.removed > 0:
                first_removed = line_range.start + line_range.target_height
                draw.rectangle([0, first_removed, right, line_range.end], fill=REMOVED_FILL)
        draw.line([(0, line_range.start), (right, line_range.start)], fill=BOUNDARY_COLOR)

    return Image.alpha_composite(base, overlay).convert("RGB")
