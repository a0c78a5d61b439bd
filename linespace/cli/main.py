from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Sequence
from functools import wraps
from pathlib import Path
from typing import Any, ParamSpec, TypeVar

import typer

from linespace.utils.log_utils import logger

from . import convert, segment


app = typer.Typer(
    help="Batch resize scanned pages and normalize the space between their lines.",
)


_P = ParamSpec("_P")
_T = TypeVar("_T")


def _synchronous(handler: Callable[_P, Coroutine[Any, Any, _T]]) -> Callable[_P, _T]:
    @wraps(handler)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _T:
        try:
            return asyncio.run(handler(*args, **kwargs))
        except KeyboardInterrupt as err:
            logger.info("Interrupted by user")
            raise typer.Exit(code=130) from err

    return wrapper


def _line_space_overrides(
    width_ratio: float | None,
    height_ratio: float | None,
    line_space_scale: float | None,
    min_space: int | None,
    max_remove: int | None,
    darkness_threshold: int | None,
    empty_line_threshold: float | None,
) -> dict[str, Any]:
    return {
        "width_ratio": width_ratio,
        "height_ratio": height_ratio,
        "line_space_scale": line_space_scale,
        "min_space": min_space,
        "max_remove": max_remove,
        "darkness_threshold": darkness_threshold,
        "empty_line_threshold": empty_line_threshold,
    }


_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="YAML configuration file. Defaults to $LINESPACE_CONFIG when set.",
    exists=True,
    file_okay=True,
    dir_okay=False,
    readable=True,
)
_WIDTH_RATIO_OPTION = typer.Option(None, "--width-ratio", help="Width part of the target aspect ratio.")
_HEIGHT_RATIO_OPTION = typer.Option(None, "--height-ratio", help="Height part of the target aspect ratio.")
_SCALE_OPTION = typer.Option(
    None, "--line-space-scale", help="Shrink factor applied to background bands."
)
_MIN_SPACE_OPTION = typer.Option(
    None, "--min-space", help="Background bands are never reduced below this many rows."
)
_MAX_REMOVE_OPTION = typer.Option(
    None, "--max-remove", help="Maximum rows removed from a single background band."
)
_DARKNESS_OPTION = typer.Option(
    None,
    "--darkness-threshold",
    help="Brightness (0-65535) below which a pixel counts as dark.",
)
_EMPTY_LINE_OPTION = typer.Option(
    None,
    "--empty-line-threshold",
    help="Dark pixels that make a row content: a count when >= 1, a fraction of the width otherwise.",
)


@app.command("convert")
@_synchronous
async def convert_command(
    config_file: Path | None = _CONFIG_OPTION,
    src_dir: Path | None = typer.Option(
        None,
        "--src",
        help="Source directory with .jpg/.jpeg/.png/.gif files.",
        file_okay=False,
        dir_okay=True,
    ),
    dest_dir: Path | None = typer.Option(
        None,
        "--dest",
        help="Destination directory for JPEG files (created if missing).",
        file_okay=False,
        dir_okay=True,
    ),
    dest_filename: str | None = typer.Option(
        None,
        "--dest-filename",
        help="Output name pattern; ${filename} and ${base} are substituted.",
    ),
    width: int | None = typer.Option(None, "--width", help="Bounding box width."),
    height: int | None = typer.Option(None, "--height", help="Bounding box height."),
    quality: int | None = typer.Option(None, "--quality", help="JPEG quality (0-100)."),
    max_workers: int | None = typer.Option(
        None,
        "--workers",
        help="Parallel workers. Values <= 0 use the logical CPU count.",
    ),
    queue_size: int | None = typer.Option(
        None, "--queue-size", help="Maximum number of queued files."
    ),
    rotate: float | None = typer.Option(
        None, "--rotate", help="Rotate pages counter-clockwise by this many degrees."
    ),
    change_line_space: bool | None = typer.Option(
        None,
        "--line-space/--no-line-space",
        help="Enable line-space normalization.",
    ),
    width_ratio: float | None = _WIDTH_RATIO_OPTION,
    height_ratio: float | None = _HEIGHT_RATIO_OPTION,
    line_space_scale: float | None = _SCALE_OPTION,
    min_space: int | None = _MIN_SPACE_OPTION,
    max_remove: int | None = _MAX_REMOVE_OPTION,
    darkness_threshold: int | None = _DARKNESS_OPTION,
    empty_line_threshold: float | None = _EMPTY_LINE_OPTION,
    progress: bool = typer.Option(False, "--progress/--no-progress", help="Show a progress bar."),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List the files that would be converted then exit.",
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Console log level."),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also log to this file."),
) -> int:
    overrides: dict[str, Any] = {
        "src_dir": src_dir,
        "dest_dir": dest_dir,
        "dest_filename": dest_filename,
        "width": width,
        "height": height,
        "quality": quality,
        "max_workers": max_workers,
        "queue_size": queue_size,
        "rotate": rotate,
        "change_line_space": change_line_space,
    }
    overrides.update(
        _line_space_overrides(
            width_ratio,
            height_ratio,
            line_space_scale,
            min_space,
            max_remove,
            darkness_threshold,
            empty_line_threshold,
        )
    )
    options = convert.ConvertOptions(
        config_file=config_file,
        overrides=overrides,
        progress=progress,
        dry_run=dry_run,
        log_level=log_level,
        log_file=log_file,
    )
    result = await convert.run(options)
    if result != 0:
        raise typer.Exit(code=result)
    return result


@app.command("segment")
def segment_command(
    image: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Image to analyse.",
    ),
    config_file: Path | None = _CONFIG_OPTION,
    width: int | None = typer.Option(None, "--width", help="Bounding box width."),
    height: int | None = typer.Option(None, "--height", help="Bounding box height."),
    rotate: float | None = typer.Option(None, "--rotate", help="Rotation in degrees."),
    width_ratio: float | None = _WIDTH_RATIO_OPTION,
    height_ratio: float | None = _HEIGHT_RATIO_OPTION,
    line_space_scale: float | None = _SCALE_OPTION,
    min_space: int | None = _MIN_SPACE_OPTION,
    max_remove: int | None = _MAX_REMOVE_OPTION,
    darkness_threshold: int | None = _DARKNESS_OPTION,
    empty_line_threshold: float | None = _EMPTY_LINE_OPTION,
    overlay: Path | None = typer.Option(
        None,
        "--overlay",
        help="Write a copy of the image with background bands highlighted.",
        dir_okay=False,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Console log level."),
) -> int:
    overrides: dict[str, Any] = {"width": width, "height": height, "rotate": rotate}
    overrides.update(
        _line_space_overrides(
            width_ratio,
            height_ratio,
            line_space_scale,
            min_space,
            max_remove,
            darkness_threshold,
            empty_line_threshold,
        )
    )
    options = segment.SegmentOptions(
        image=image,
        config_file=config_file,
        overrides=overrides,
        overlay=overlay,
        log_level=log_level,
    )
    result = segment.run(options)
    if result != 0:
        raise typer.Exit(code=result)
    return result


def main(argv: Sequence[str] | None = None) -> int:
    try:
        result = app(args=list(argv) if argv is not None else None, standalone_mode=False)
    except SystemExit as exc:
        return int(exc.code or 0)
    return int(result or 0)


if __name__ == "__main__":  # pragma: no cover
    app()
