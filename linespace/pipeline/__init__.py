"""Batch conversion pipeline.

Primary public entry point:
    ``run_pipeline`` – an asyncio based producer/consumer pipeline that:
      1. Lists the source directory and queues one task per image, in
         filename order, on a bounded queue.
      2. Runs a fixed pool of workers that transform each image in a thread
         pool (decode, rotate, resize, line-space normalization, JPEG encode).
      3. Stops every worker with a sentinel once the queue has been drained.
"""

from .models import FileResult, RunSummary, Stage, Task
from .runner import (
    ConversionPipeline,
    DirectoryScanner,
    ShutdownCoordinator,
    WorkerPool,
    run_pipeline,
)
from .transform import ImageTransformPipeline


__all__ = [
    "ConversionPipeline",
    "DirectoryScanner",
    "FileResult",
    "ImageTransformPipeline",
    "RunSummary",
    "ShutdownCoordinator",
    "Stage",
    "Task",
    "WorkerPool",
    "run_pipeline",
]
