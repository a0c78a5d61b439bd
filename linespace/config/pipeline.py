"""Pipeline configuration: the immutable snapshot shared by every worker.

``PipelineConfig`` is built once (defaults, then an optional YAML file, then
command-line overrides) and handed by reference to the scanner and all
workers. It is a frozen dataclass, so workers read it without locking.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from linespace.errors import ConfigError
from linespace.files import get_base
from linespace.line_space import LineSpaceOptions
from linespace.utils.concurrency import default_worker_count
from linespace.utils.log_utils import logger


FILENAME_TOKEN = "${filename}"
BASE_TOKEN = "${base}"


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level snapshot of pipeline options."""

    src_dir: Path = Path("./")
    dest_dir: Path = Path("./output")
    dest_filename: str = FILENAME_TOKEN
    width: int = -1
    height: int = -1
    quality: int = 100
    max_workers: int = 0
    queue_size: int = 100
    rotate: float = 0.0
    change_line_space: bool = False
    width_ratio: float = 3.0
    height_ratio: float = 4.0
    line_space_scale: float = 0.5
    min_space: int = 10
    max_remove: int = 100
    darkness_threshold: int = 128 * 256
    empty_line_threshold: float = 0.01

    def __post_init__(self) -> None:
        if not 0 <= self.quality <= 100:
            raise ConfigError(f"quality must be within 0..100, got {self.quality}")
        if self.queue_size < 1:
            raise ConfigError(f"queue_size must be >= 1, got {self.queue_size}")
        if self.width_ratio <= 0:
            raise ConfigError(f"width_ratio must be > 0, got {self.width_ratio}")
        if self.height_ratio < 0:
            raise ConfigError(f"height_ratio must be >= 0, got {self.height_ratio}")
        if self.line_space_scale < 0:
            raise ConfigError(f"line_space_scale must be >= 0, got {self.line_space_scale}")
        if self.min_space < 0 or self.max_remove < 0:
            raise ConfigError("min_space and max_remove must be >= 0")
        if not 0 <= self.darkness_threshold <= 0xFFFF:
            raise ConfigError(
                f"darkness_threshold must be within 0..65535, got {self.darkness_threshold}"
            )
        if self.empty_line_threshold < 0:
            raise ConfigError(
                f"empty_line_threshold must be >= 0, got {self.empty_line_threshold}"
            )
        if not self.dest_filename:
            raise ConfigError("dest_filename must not be empty")

    @property
    def worker_count(self) -> int:
        """Configured parallelism, falling back to the logical CPU count."""
        if self.max_workers <= 0:
            return default_worker_count()
        return self.max_workers

    def format_dest_filename(self, filename: str) -> str:
        """Expand ``${filename}`` and ``${base}`` in the destination pattern."""
        result = self.dest_filename.replace(FILENAME_TOKEN, filename)
        return result.replace(BASE_TOKEN, get_base(filename).lower())

    @property
    def line_space_options(self) -> LineSpaceOptions:
        return LineSpaceOptions(
            width_ratio=self.width_ratio,
            height_ratio=self.height_ratio,
            line_space_scale=self.line_space_scale,
            min_space=self.min_space,
            max_remove=self.max_remove,
            darkness_threshold=self.darkness_threshold,
            empty_line_threshold=self.empty_line_threshold,
        )

    def describe(self) -> list[tuple[str, object]]:
        rows: list[tuple[str, object]] = [(f.name, getattr(self, f.name)) for f in fields(self)]
        rows.append(("workers (effective)", self.worker_count))
        return rows


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "yes", "on", "1"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "no", "off", "0"}:
        return False
    raise ValueError(f"not a boolean: {value!r}")


# YAML keys keep the camelCase names of the original configuration files.
_YAML_KEYS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "srcDir": ("src_dir", Path),
    "destDir": ("dest_dir", Path),
    "destFilename": ("dest_filename", str),
    "width": ("width", int),
    "height": ("height", int),
    "quality": ("quality", int),
    "maxCPU": ("max_workers", int),
    "queueSize": ("queue_size", int),
    "rotate": ("rotate", float),
    "changeLineSpace": ("change_line_space", _to_bool),
    "widthRatio": ("width_ratio", float),
    "heightRatio": ("height_ratio", float),
    "lineSpaceScale": ("line_space_scale", float),
    "minSpace": ("min_space", int),
    "maxRemove": ("max_remove", int),
    "darknessThreshold": ("darkness_threshold", int),
    "emptyLineThreshold": ("empty_line_threshold", float),
}


def _coerce_yaml(data: Mapping[str, Any], source: Path) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, raw in data.items():
        if key not in _YAML_KEYS:
            logger.warning(f"Ignoring unknown configuration key '{key}' in {source}")
            continue
        if raw is None:
            continue
        field_name, convert = _YAML_KEYS[key]
        try:
            values[field_name] = convert(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for '{key}' in {source}: {exc}") from exc
    return values


def read_yaml_config(config_file: str | Path) -> dict[str, Any]:
    """Read a YAML configuration file into ``PipelineConfig`` keyword arguments.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, does not hold a
            mapping, or holds a value of the wrong type.
    """
    path = Path(config_file)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Error parsing YAML file at {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration file {path} must contain a mapping at top level")

    logger.info(f"Loading configuration from {path}")
    return _coerce_yaml(data, path)


def load_config(config_file: str | Path | None = None, **overrides: Any) -> PipelineConfig:
    """Build a ``PipelineConfig`` from defaults, an optional YAML file and overrides.

    Overrides whose value is ``None`` are ignored, so command-line options that
    were not given leave the file value (or the default) in place.
    """
    values: dict[str, Any] = {}
    if config_file is not None:
        values.update(read_yaml_config(config_file))

    known = {f.name for f in fields(PipelineConfig)}
    for key, value in overrides.items():
        if key not in known:
            raise ConfigError(f"Unknown configuration option '{key}'")
        if value is not None:
            values[key] = value

    for key in ("src_dir", "dest_dir"):
        if key in values:
            values[key] = Path(values[key])
    return PipelineConfig(**values)


__all__ = ["PipelineConfig", "load_config", "read_yaml_config"]
