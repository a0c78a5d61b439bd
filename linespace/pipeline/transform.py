"""Per-file transform: decode, rotate, resize, normalize line space, encode."""

from __future__ import annotations

from linespace.config import PipelineConfig
from linespace.line_space import normalize_line_space
from linespace.utils.image import load_image, resize_image_to_fit, rotate_image, save_jpeg
from linespace.utils.log_utils import logger

from .models import FileResult, Stage, Task


def _detach_traceback(exc: BaseException) -> BaseException:
    """Drop the tracebacks of ``exc`` and its causes.

    A traceback keeps the failing frames alive, and with them the decoded image.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        current.with_traceback(None)
        current = current.__cause__ or current.__context__
    return exc


class ImageTransformPipeline:
    """Turns one source image into one JPEG according to a ``PipelineConfig``.

    The pipeline holds no per-file state, so a single instance is shared by
    every worker thread.
    """

    def __init__(self, config: PipelineConfig) -> None:
        self._config = config
        self._line_space_options = config.line_space_options

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def __call__(self, task: Task) -> FileResult:
        return self.process(task)

    def process(self, task: Task) -> FileResult:
        """Run every stage on ``task``.

        A failure stops this file only: it is logged once and returned in the
        ``FileResult``; it is never raised.
        """
        if task.filename is None:
            raise ValueError("Cannot transform a shutdown sentinel")

        config = self._config
        stage = Stage.DECODE
        try:
            logger.info(f"[READ] {task.filename}")
            image = load_image(task.path)

            if config.rotate:
                stage = Stage.ROTATE
                image = rotate_image(image, config.rotate)

            stage = Stage.RESIZE
            image = resize_image_to_fit(image, config.width, config.height)

            if config.change_line_space:
                stage = Stage.LINE_SPACE
                result = normalize_line_space(image, self._line_space_options)
                logger.debug(
                    f"{task.filename}: {len(result.ranges)} line ranges, height "
                    f"{image.height} -> {result.allocation.output_height} "
                    f"(target >= {result.allocation.min_target_height}, "
                    f"{result.allocation.iterations} growth passes)"
                )
                image = result.image

            stage = Stage.ENCODE
            out_path = save_jpeg(
                image,
                config.dest_dir,
                config.format_dest_filename(task.filename),
                config.quality,
            )
        except Exception as exc:
            logger.error(f"Error : {task.filename} : {stage.value} failed : {exc}")
            return FileResult(filename=task.filename, stage=stage, error=_detach_traceback(exc))

        logger.info(f"[WRITE] {task.filename} -> {out_path}")
        return FileResult(filename=task.filename, stage=Stage.DONE, output_path=out_path)


__all__ = ["ImageTransformPipeline"]
