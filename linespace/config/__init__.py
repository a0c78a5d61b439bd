"""Configuration helpers for linespace.

`PipelineConfig` is the immutable per-run snapshot; `load_config` builds it
from defaults, a YAML file and overrides. `get_settings` exposes the
environment-driven runtime settings.
"""

from .pipeline import PipelineConfig, load_config, read_yaml_config
from .settings import LinespaceSettings, get_settings


__all__ = [
    "LinespaceSettings",
    "PipelineConfig",
    "get_settings",
    "load_config",
    "read_yaml_config",
]
