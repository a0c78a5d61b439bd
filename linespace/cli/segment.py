from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from linespace.errors import ConfigError, LinespaceError
from linespace.line_space import Allocation, LineRange, plan_line_space
from linespace.utils.image import load_image, resize_image_to_fit, rotate_image
from linespace.utils.log_utils import logger
from linespace.visualization import draw_line_ranges

from .convert import EXIT_CONFIG_ERROR, EXIT_OK, resolve_config, setup_logging


EXIT_IMAGE_ERROR = 1


@dataclass(slots=True)
class SegmentOptions:
    image: Path
    config_file: Path | None
    overrides: dict[str, Any] = field(default_factory=dict)
    overlay: Path | None = None
    log_level: str | None = None


def build_table(image_name: str, ranges: list[LineRange], allocation: Allocation) -> Table:
    table = Table(title=f"Line ranges of {image_name}")
    table.add_column("#", justify="right")
    table.add_column("rows")
    table.add_column("kind")
    table.add_column("height", justify="right")
    table.add_column("target", justify="right")
    table.add_column("removed", justify="right")
    for index, line_range in enumerate(ranges):
        table.add_row(
            str(index),
            f"{line_range.start}-{line_range.end}",
            "background" if line_range.is_background else "content",
            str(line_range.height),
            str(line_range.target_height),
            str(line_range.removed),
        )
    table.caption = (
        f"output height {allocation.output_height} "
        f"(after shrink {allocation.shrunk_height}, target >= {allocation.min_target_height}, "
        f"{allocation.iterations} growth passes)"
    )
    return table


def run(options: SegmentOptions, console: Console | None = None) -> int:
    """Print the line ranges the pipeline would use for one image."""
    setup_logging(options.log_level, None)

    try:
        config = resolve_config(options.config_file, options.overrides)
    except ConfigError as exc:
        logger.error(str(exc))
        return EXIT_CONFIG_ERROR

    try:
        image = load_image(options.image)
    except LinespaceError as exc:
        logger.error(f"Error : {options.image.name} : {exc}")
        return EXIT_IMAGE_ERROR
    image = rotate_image(image, config.rotate)
    image = resize_image_to_fit(image, config.width, config.height)

    ranges, allocation = plan_line_space(image, config.line_space_options)
    (console or Console()).print(build_table(options.image.name, ranges, allocation))

    if options.overlay is not None:
        try:
            options.overlay.parent.mkdir(parents=True, exist_ok=True)
            draw_line_ranges(image, ranges).save(options.overlay)
        except (OSError, ValueError) as exc:
            logger.error(f"Error : cannot write overlay {options.overlay} : {exc}")
            return EXIT_IMAGE_ERROR
        logger.info(f"Overlay written to {options.overlay}")
    return EXIT_OK
