"""Data containers passed between pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import os
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Task:
    """One file to convert, or the sentinel that stops a worker."""

    source_dir: str
    filename: str | None = None
    is_shutdown_sentinel: bool = False

    @classmethod
    def sentinel(cls) -> Task:
        return cls(source_dir="", filename=None, is_shutdown_sentinel=True)

    @property
    def path(self) -> str:
        if self.filename is None:
            raise ValueError("Shutdown sentinel has no file path")
        return os.path.join(self.source_dir, self.filename)


class Stage(str, Enum):
    """Steps of the per-file transform, in order."""

    DECODE = "decode"
    ROTATE = "rotate"
    RESIZE = "resize"
    LINE_SPACE = "line_space"
    ENCODE = "encode"
    DONE = "done"


@dataclass(slots=True)
class FileResult:
    """Outcome of one file.

    ``stage`` is ``Stage.DONE`` on success, otherwise the stage that failed,
    or ``None`` when the failure escaped the transform itself.
    """

    filename: str
    stage: Stage | None
    output_path: Path | None = None
    error: BaseException | None = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None and self.stage is Stage.DONE


@dataclass(slots=True)
class RunSummary:
    queued: int = 0
    processed: int = 0
    failed: int = 0
    workers: int = 0
    scan_failed: bool = False
    failed_files: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        """True when the source directory was listed; per-file failures do not count."""
        return not self.scan_failed


__all__ = ["FileResult", "RunSummary", "Stage", "Task"]
