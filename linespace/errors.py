"""Custom exception types for the linespace pipeline."""

from __future__ import annotations


class LinespaceError(RuntimeError):
    """Base class for every error raised by linespace."""

    pass


class ConfigError(LinespaceError):
    """Raised when a configuration file or value cannot be used.

    This covers missing or malformed YAML files as well as values outside
    their valid range (quality above 100, non-positive ratios, ...).
    """

    pass


class UnsupportedFormatError(LinespaceError):
    """Raised when a file extension has no matching image codec."""

    pass


class DecodeError(LinespaceError):
    pass


class EncodeError(LinespaceError):
    pass


class LineSpaceError(LinespaceError):
    """Raised when line-space normalization cannot produce an image."""

    pass


__all__ = [
    "ConfigError",
    "DecodeError",
    "EncodeError",
    "LineSpaceError",
    "LinespaceError",
    "UnsupportedFormatError",
]
