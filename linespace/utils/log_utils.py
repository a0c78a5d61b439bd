"""Logging utilities shared across the linespace package."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger
from rich.logging import RichHandler


_CONFIGURED: bool = False

DEFAULT_CONSOLE_LEVEL = "INFO"
DEFAULT_FILE_LEVEL = "DEBUG"
DEFAULT_FILE_ROTATION = "5 MB"
DEFAULT_FILE_RETENTION = 2

_RICH_HANDLER_KWARGS: dict[str, Any] = {
    "markup": False,
    "show_time": True,
    "show_path": False,
}


def configure_logging(
    level: str = DEFAULT_CONSOLE_LEVEL,
    log_file: str | Path | None = None,
    *,
    force: bool = False,
) -> None:
    """Configure the shared logger.

    The console sink goes through rich. When ``log_file`` is given, a rotating
    file sink records everything down to DEBUG. The file sink is enqueued so
    that worker threads can log without interleaving partial lines.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    logger.remove()

    logger.add(
        RichHandler(**_RICH_HANDLER_KWARGS),  # type: ignore[arg-type]
        level=level.upper(),
        format="{message}",
    )

    if log_file:
        resolved_file_path = Path(log_file).expanduser().resolve()
        resolved_file_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(resolved_file_path),
            level=DEFAULT_FILE_LEVEL,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {thread.name} | {message}",
            rotation=DEFAULT_FILE_ROTATION,
            retention=DEFAULT_FILE_RETENTION,
            enqueue=True,
        )

    _CONFIGURED = True


__all__ = ["configure_logging", "logger"]

# Configure console logging on import so callers only need to import `logger`.
configure_logging()
