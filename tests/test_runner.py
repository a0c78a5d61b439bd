from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
import threading
import time

from PIL import Image
import pytest

from linespace.config import PipelineConfig
from linespace.pipeline import (
    DirectoryScanner,
    FileResult,
    ShutdownCoordinator,
    Stage,
    Task,
    WorkerPool,
    run_pipeline,
)


class RecordingProcessor:
    """Thread-safe stand-in for the image transform."""

    def __init__(self, delay: float = 0.0, fail_on: set[str] | None = None) -> None:
        self.delay = delay
        self.fail_on = fail_on or set()
        self.seen: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, task: Task) -> FileResult:
        assert not task.is_shutdown_sentinel
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.seen.append(task.filename)
        if task.filename in self.fail_on:
            raise RuntimeError(f"boom: {task.filename}")
        return FileResult(filename=task.filename, stage=Stage.DONE)


class CountingProgress:
    def __init__(self) -> None:
        self.started = False
        self.closed = False
        self.done = 0
        self.failed = 0

    def start(self, total: int | None) -> None:
        self.started = True

    def increment(self, *, failed: bool = False) -> None:
        self.done += 1
        if failed:
            self.failed += 1

    def close(self) -> None:
        self.closed = True


def _touch(directory: Path, names: list[str]) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"")


def _drain(queue: asyncio.Queue[Task]) -> list[Task]:
    items = []
    while not queue.empty():
        items.append(queue.get_nowait())
    return items


@pytest.mark.asyncio
async def test_every_task_is_processed_exactly_once(tmp_path: Path) -> None:
    names = [f"page_{i:02d}.png" for i in range(10)]
    _touch(tmp_path / "src", names)
    processor = RecordingProcessor(delay=0.01)
    progress = CountingProgress()
    config = PipelineConfig(src_dir=tmp_path / "src", max_workers=3, queue_size=2)

    summary = await run_pipeline(config, processor=processor, progress_reporter=progress)

    assert sorted(processor.seen) == names
    assert len(processor.seen) == 10
    assert summary.queued == 10
    assert summary.processed == 10
    assert summary.failed == 0
    assert summary.workers == 3
    assert summary.completed
    assert progress.started and progress.closed
    assert progress.done == 10


@pytest.mark.asyncio
async def test_one_sentinel_per_worker() -> None:
    queue: asyncio.Queue[Task] = asyncio.Queue(maxsize=4)
    scan_complete = asyncio.Event()
    scan_complete.set()
    for name in ["a.png", "b.png"]:
        queue.put_nowait(Task(source_dir="src", filename=name))

    with ThreadPoolExecutor(max_workers=3) as executor:
        pool = WorkerPool(size=3, processor=RecordingProcessor(), executor=executor)
        workers = pool.spawn(queue)
        coordinator = ShutdownCoordinator(queue, scan_complete)
        handled = await asyncio.wait_for(coordinator.shutdown(workers), timeout=5)

    assert coordinator.sentinels_sent == 3
    assert pool.terminated == 3
    assert sum(handled) == 2
    assert queue.empty()


@pytest.mark.asyncio
async def test_pool_keeps_counts_instead_of_results() -> None:
    queue: asyncio.Queue[Task] = asyncio.Queue()
    scan_complete = asyncio.Event()
    scan_complete.set()
    for name in ["a.png", "b.png", "c.png"]:
        queue.put_nowait(Task(source_dir="src", filename=name))

    with ThreadPoolExecutor(max_workers=2) as executor:
        pool = WorkerPool(
            size=2, processor=RecordingProcessor(fail_on={"b.png"}), executor=executor
        )
        workers = pool.spawn(queue)
        await asyncio.wait_for(ShutdownCoordinator(queue, scan_complete).shutdown(workers), timeout=5)

    assert pool.converted == 2
    assert pool.failed_files == ["b.png"]
    assert not hasattr(pool, "results")


@pytest.mark.asyncio
async def test_shutdown_waits_for_scan_completion() -> None:
    queue: asyncio.Queue[Task] = asyncio.Queue()
    scan_complete = asyncio.Event()
    coordinator = ShutdownCoordinator(queue, scan_complete)

    with ThreadPoolExecutor(max_workers=1) as executor:
        pool = WorkerPool(size=1, processor=RecordingProcessor(), executor=executor)
        workers = pool.spawn(queue)
        shutdown = asyncio.create_task(coordinator.shutdown(workers))
        await asyncio.sleep(0.05)
        assert coordinator.sentinels_sent == 0
        assert not shutdown.done()

        scan_complete.set()
        await asyncio.wait_for(shutdown, timeout=5)

    assert coordinator.sentinels_sent == 1
    assert pool.terminated == 1


@pytest.mark.asyncio
async def test_scanner_queues_in_filename_order(tmp_path: Path) -> None:
    _touch(tmp_path, ["b.png", "c.jpg", "a.gif"])
    queue: asyncio.Queue[Task] = asyncio.Queue()
    scan_complete = asyncio.Event()

    queued = await DirectoryScanner(tmp_path).produce(queue, scan_complete)

    assert queued == 3
    assert scan_complete.is_set()
    tasks = _drain(queue)
    assert [task.filename for task in tasks] == ["a.gif", "b.png", "c.jpg"]
    assert all(task.source_dir == str(tmp_path) for task in tasks)


@pytest.mark.asyncio
async def test_scanner_blocks_on_full_queue(tmp_path: Path) -> None:
    _touch(tmp_path, [f"{i}.png" for i in range(5)])
    queue: asyncio.Queue[Task] = asyncio.Queue(maxsize=2)
    scan_complete = asyncio.Event()

    producer = asyncio.create_task(DirectoryScanner(tmp_path).produce(queue, scan_complete))
    for _ in range(100):
        if queue.full():
            break
        await asyncio.sleep(0.01)
    await asyncio.sleep(0.02)

    assert queue.qsize() == 2
    assert not scan_complete.is_set()

    received = []
    while len(received) < 5:
        task = await asyncio.wait_for(queue.get(), timeout=5)
        received.append(task.filename)
    assert await producer == 5
    assert scan_complete.is_set()
    assert received == [f"{i}.png" for i in range(5)]


@pytest.mark.asyncio
async def test_single_worker_preserves_order(tmp_path: Path) -> None:
    names = ["a.png", "b.png", "c.png", "d.png"]
    _touch(tmp_path / "src", names)
    processor = RecordingProcessor()
    config = PipelineConfig(src_dir=tmp_path / "src", max_workers=1, queue_size=1)

    summary = await run_pipeline(config, processor=processor)

    assert processor.seen == names
    assert summary.workers == 1


@pytest.mark.asyncio
async def test_bad_files_do_not_stop_the_run(tmp_path: Path, log_messages: list[str]) -> None:
    src = tmp_path / "src"
    src.mkdir()
    Image.new("RGB", (20, 10), "white").save(src / "a.png")
    (src / "b.txt").write_text("not an image")
    Image.new("L", (10, 20), 255).save(src / "c.gif")
    (src / "d.jpg").write_bytes(b"garbage")
    config = PipelineConfig(src_dir=src, dest_dir=tmp_path / "out", max_workers=2)

    summary = await run_pipeline(config)

    assert summary.queued == 3
    assert summary.processed == 2
    assert summary.failed == 1
    assert summary.failed_files == ["d.jpg"]
    assert summary.workers == 2
    assert (tmp_path / "out" / "a.png").exists()
    assert (tmp_path / "out" / "c.gif").exists()
    assert not (tmp_path / "out" / "b.txt").exists()
    assert any("b.txt" in message for message in log_messages)
    assert any(message.startswith("Error : d.jpg") for message in log_messages)


@pytest.mark.asyncio
async def test_processor_crash_is_contained(tmp_path: Path) -> None:
    _touch(tmp_path / "src", ["a.png", "b.png", "c.png"])
    processor = RecordingProcessor(fail_on={"b.png"})
    progress = CountingProgress()
    config = PipelineConfig(src_dir=tmp_path / "src", max_workers=2)

    summary = await run_pipeline(config, processor=processor, progress_reporter=progress)

    assert summary.processed == 2
    assert summary.failed_files == ["b.png"]
    assert summary.workers == 2
    assert progress.failed == 1


@pytest.mark.asyncio
async def test_unreadable_source_directory(tmp_path: Path) -> None:
    processor = RecordingProcessor()
    config = PipelineConfig(src_dir=tmp_path / "missing", max_workers=3)

    summary = await asyncio.wait_for(run_pipeline(config, processor=processor), timeout=5)

    assert summary.scan_failed
    assert not summary.completed
    assert summary.queued == 0
    assert summary.workers == 3
    assert processor.seen == []
