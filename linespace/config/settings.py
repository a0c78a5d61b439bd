"""Centralised environment configuration for linespace.

This module ensures `.env` loading happens in one place and exposes a typed
snapshot of the runtime knobs that are not part of a pipeline run: where the
default configuration file lives and how logging is set up. Downstream
modules call `get_settings()` instead of touching `os.environ` directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from dotenv import load_dotenv


_DEFAULT_ENV_PATH = Path.cwd() / ".env"

DEFAULT_LOG_LEVEL = "INFO"
_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def _coerce_path(value: str | None) -> Path | None:
    if value is None or value.strip() == "":
        return None
    return Path(value).expanduser()


def _coerce_level(value: str | None) -> str:
    if value is None:
        return DEFAULT_LOG_LEVEL
    level = value.strip().upper()
    return level if level in _LOG_LEVELS else DEFAULT_LOG_LEVEL


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    file: Path | None


@dataclass(frozen=True)
class LinespaceSettings:
    """Top-level snapshot of environment-driven values."""

    env_file: Path
    config_file: Path | None
    logging: LoggingSettings


def _resolve_env_path(env_file: os.PathLike[str] | str | None) -> Path:
    if env_file is None:
        return _DEFAULT_ENV_PATH
    return Path(env_file).resolve()


@lru_cache(maxsize=4)
def _load_settings(env_path: Path) -> LinespaceSettings:
    # Existing environment variables take precedence over `.env` defaults.
    load_dotenv(dotenv_path=env_path, override=False)

    return LinespaceSettings(
        env_file=env_path,
        config_file=_coerce_path(os.getenv("LINESPACE_CONFIG")),
        logging=LoggingSettings(
            level=_coerce_level(os.getenv("LINESPACE_LOG_LEVEL")),
            file=_coerce_path(os.getenv("LINESPACE_LOG_FILE")),
        ),
    )


def get_settings(
    env_file: os.PathLike[str] | str | None = None,
    *,
    reload: bool = False,
) -> LinespaceSettings:
    """Return the cached settings snapshot.

    Args:
        env_file: Optional explicit path to a `.env` file. When omitted the
            `.env` file in the working directory is used.
        reload: When True the cached snapshot is cleared before loading.
    """
    env_path = _resolve_env_path(env_file)
    if reload:
        _load_settings.cache_clear()
    return _load_settings(env_path)
