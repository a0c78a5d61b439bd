"""Progress reporting helpers for the worker pool."""

from __future__ import annotations

import os
from typing import Protocol

from tqdm import tqdm


class ProgressReporter(Protocol):
    """Lightweight progress reporter abstraction."""

    def start(self, total: int | None) -> None: ...

    def increment(self, *, failed: bool = False) -> None: ...

    def close(self) -> None: ...


class TqdmProgressReporter:
    """Progress reporter backed by tqdm.

    The scanner streams tasks into the queue, so the total is usually unknown
    when the bar starts. tqdm then shows a running count and rate instead of
    a percentage.
    """

    def __init__(self, desc: str) -> None:
        self._desc = desc
        self._pbar: tqdm | None = None
        self._failed = 0

    def start(self, total: int | None) -> None:
        self._pbar = tqdm(
            total=total,
            desc=self._desc,
            unit="file",
            smoothing=0,
            leave=False,
        )

    def increment(self, *, failed: bool = False) -> None:
        if self._pbar is None:
            return
        if failed:
            self._failed += 1
            self._pbar.set_postfix(failed=self._failed, refresh=False)
        self._pbar.update(1)

    def close(self) -> None:
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


def default_worker_count() -> int:
    """Number of logical CPUs on this host, at least 1."""
    return os.cpu_count() or 1


__all__ = ["ProgressReporter", "TqdmProgressReporter", "default_worker_count"]
