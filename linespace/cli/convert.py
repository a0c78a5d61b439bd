from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from linespace.config import PipelineConfig, get_settings, load_config
from linespace.errors import ConfigError
from linespace.files import list_images
from linespace.pipeline import run_pipeline
from linespace.utils.concurrency import TqdmProgressReporter
from linespace.utils.log_utils import configure_logging, logger


EXIT_OK = 0
EXIT_SCAN_FAILED = 1
EXIT_CONFIG_ERROR = 2


@dataclass(slots=True)
class ConvertOptions:
    config_file: Path | None
    overrides: dict[str, Any] = field(default_factory=dict)
    progress: bool = False
    dry_run: bool = False
    log_level: str | None = None
    log_file: Path | None = None


def setup_logging(log_level: str | None, log_file: Path | None) -> None:
    settings = get_settings()
    configure_logging(
        level=log_level or settings.logging.level,
        log_file=log_file or settings.logging.file,
        force=True,
    )


def resolve_config(config_file: Path | None, overrides: dict[str, Any]) -> PipelineConfig:
    """Load the YAML file named on the command line or in ``LINESPACE_CONFIG``."""
    return load_config(config_file or get_settings().config_file, **overrides)


def log_config(config: PipelineConfig) -> None:
    for name, value in config.describe():
        logger.info(f"{name} : {value}")


async def run(options: ConvertOptions) -> int:
    setup_logging(options.log_level, options.log_file)

    try:
        config = resolve_config(options.config_file, options.overrides)
    except ConfigError as exc:
        logger.error(str(exc))
        return EXIT_CONFIG_ERROR
    log_config(config)

    if options.dry_run:
        try:
            filenames = list_images(config.src_dir)
        except OSError as exc:
            logger.error(f"Cannot list source directory {config.src_dir}: {exc}")
            return EXIT_SCAN_FAILED
        if not filenames:
            logger.warning("No image files found.")
        for filename in filenames:
            logger.info(f"DRY RUN: {filename} -> {config.format_dest_filename(filename)}")
        return EXIT_OK

    reporter = TqdmProgressReporter("Converting") if options.progress else None
    summary = await run_pipeline(config, progress_reporter=reporter)
    return EXIT_OK if summary.completed else EXIT_SCAN_FAILED
