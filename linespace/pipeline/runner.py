"""Queued conversion pipeline: one scanner, a pool of workers, one coordinator.

The scanner lists the source directory and feeds one ``Task`` per image into a
bounded ``asyncio.Queue``; ``put`` blocks once the queue is full, which keeps
the scanner from running far ahead of the slowest worker. Each worker pulls
tasks and hands the CPU-bound transform to a thread pool with one thread per
worker. When the scanner is done, the coordinator appends one sentinel per
worker. The queue is FIFO, so every real task is taken before any sentinel
and every worker receives exactly one sentinel.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path

from linespace.config import PipelineConfig
from linespace.files import list_images
from linespace.utils.concurrency import ProgressReporter
from linespace.utils.log_utils import logger

from .models import FileResult, RunSummary, Task
from .transform import ImageTransformPipeline


TaskProcessor = Callable[[Task], FileResult]


class DirectoryScanner:
    """Producer that turns the files of one directory into queued tasks."""

    def __init__(self, source_dir: str | Path) -> None:
        self._source_dir = str(source_dir)
        self.scan_failed = False

    async def produce(self, queue: asyncio.Queue[Task], scan_complete: asyncio.Event) -> int:
        """Queue one task per supported image, in filename order.

        ``scan_complete`` is always set on exit, including when the directory
        cannot be listed, so the coordinator never waits forever.
        """
        try:
            try:
                filenames = await asyncio.to_thread(list_images, self._source_dir)
            except OSError as exc:
                self.scan_failed = True
                logger.error(f"Cannot list source directory {self._source_dir}: {exc}")
                return 0

            for filename in filenames:
                await queue.put(Task(source_dir=self._source_dir, filename=filename))
            logger.debug(f"Queued {len(filenames)} file(s) from {self._source_dir}")
            return len(filenames)
        finally:
            scan_complete.set()


class WorkerPool:
    """Fixed set of workers draining the task queue until they see a sentinel."""

    def __init__(
        self,
        *,
        size: int,
        processor: TaskProcessor,
        executor: Executor,
        progress: ProgressReporter | None = None,
    ) -> None:
        if size < 1:
            raise ValueError("size must be >= 1")
        self._size = size
        self._processor = processor
        self._executor = executor
        self._progress = progress
        self._converted = 0
        self._failed_files: list[str] = []
        self._terminated = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def converted(self) -> int:
        return self._converted

    @property
    def failed_files(self) -> list[str]:
        return self._failed_files

    @property
    def terminated(self) -> int:
        return self._terminated

    def spawn(self, queue: asyncio.Queue[Task]) -> list[asyncio.Task[int]]:
        return [
            asyncio.create_task(self._worker(index, queue), name=f"linespace-worker-{index}")
            for index in range(self._size)
        ]

    async def _worker(self, index: int, queue: asyncio.Queue[Task]) -> int:
        loop = asyncio.get_running_loop()
        handled = 0
        while True:
            task = await queue.get()
            if task.is_shutdown_sentinel:
                queue.task_done()
                break

            try:
                result = await loop.run_in_executor(self._executor, self._processor, task)
            except Exception as exc:
                logger.exception(f"Worker {index} crashed while processing {task.filename}: {exc}")
                result = FileResult(filename=task.filename or "", stage=None, error=exc)

            # Keep only counts and names so finished images are released.
            if result.ok:
                self._converted += 1
            else:
                self._failed_files.append(result.filename)
            handled += 1
            if self._progress:
                self._progress.increment(failed=not result.ok)
            queue.task_done()

        self._terminated += 1
        logger.debug(f"Worker {index} terminated after {handled} file(s)")
        return handled


class ShutdownCoordinator:
    """Orders scan completion, sentinel dispatch and the pool join."""

    def __init__(self, queue: asyncio.Queue[Task], scan_complete: asyncio.Event) -> None:
        self._queue = queue
        self._scan_complete = scan_complete
        self.sentinels_sent = 0

    async def shutdown(self, workers: Sequence[asyncio.Task[int]]) -> list[int]:
        """Wait for the scanner, stop every worker and return per-worker file counts."""
        await self._scan_complete.wait()
        for _ in workers:
            await self._queue.put(Task.sentinel())
            self.sentinels_sent += 1
        return list(await asyncio.gather(*workers))


class ConversionPipeline:
    """High-level coordinator for one batch conversion run."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        processor: TaskProcessor | None = None,
        progress_reporter: ProgressReporter | None = None,
    ) -> None:
        self._config = config
        self._processor = processor
        self._progress = progress_reporter

    async def run(self) -> RunSummary:
        config = self._config
        worker_count = config.worker_count
        processor = self._processor or ImageTransformPipeline(config)

        queue: asyncio.Queue[Task] = asyncio.Queue(maxsize=config.queue_size)
        scan_complete = asyncio.Event()
        scanner = DirectoryScanner(config.src_dir)
        coordinator = ShutdownCoordinator(queue, scan_complete)

        logger.info(f"Converting {config.src_dir} -> {config.dest_dir} with {worker_count} worker(s)")
        if self._progress:
            self._progress.start(None)
        try:
            with ThreadPoolExecutor(
                max_workers=worker_count, thread_name_prefix="linespace-worker"
            ) as executor:
                pool = WorkerPool(
                    size=worker_count,
                    processor=processor,
                    executor=executor,
                    progress=self._progress,
                )
                workers = pool.spawn(queue)
                producer = asyncio.create_task(scanner.produce(queue, scan_complete))
                await coordinator.shutdown(workers)
                queued = await producer
        finally:
            if self._progress:
                self._progress.close()

        failed = pool.failed_files
        summary = RunSummary(
            queued=queued,
            processed=pool.converted,
            failed=len(failed),
            workers=pool.terminated,
            scan_failed=scanner.scan_failed,
            failed_files=sorted(failed),
        )
        logger.info(
            f"Run complete. Queued: {summary.queued} | Converted: {summary.processed} "
            f"| Failed: {summary.failed}"
        )
        return summary


async def run_pipeline(
    config: PipelineConfig,
    *,
    processor: TaskProcessor | None = None,
    progress_reporter: ProgressReporter | None = None,
) -> RunSummary:
    pipeline = ConversionPipeline(
        config, processor=processor, progress_reporter=progress_reporter
    )
    return await pipeline.run()


__all__ = [
    "ConversionPipeline",
    "DirectoryScanner",
    "ShutdownCoordinator",
    "TaskProcessor",
    "WorkerPool",
    "run_pipeline",
]
