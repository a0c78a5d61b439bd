"""Target-height allocation for line ranges.

Pass 1 shrinks every reducible background range on its own. Pass 2 hands
rows back to the shrunk ranges, in proportion to what each one lost, until the
page is tall enough for the requested aspect ratio. Pass 2 is a bounded
heuristic: it gives up after ``MAX_GROWTH_ITERATIONS`` passes or once a pass
adds at most 1% of the current total, so the final height may land slightly
off ``min_target_height``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .ranges import LineRange


MAX_GROWTH_ITERATIONS = 5


@dataclass(frozen=True, slots=True)
class Allocation:
    output_height: int
    shrunk_height: int
    min_target_height: int
    iterations: int


def shrink_range(
    line_range: LineRange,
    line_space_scale: float,
    min_space: int,
    max_remove: int,
) -> None:
    """Pass 1 for one range: set ``target_height`` in place.

    Content ranges and background ranges no taller than ``min_space`` keep
    their full height. Other background ranges are scaled, never below
    ``min_space`` and never losing more than ``max_remove`` rows.
    """
    height = line_range.height
    if not line_range.is_background or height <= min_space:
        line_range.target_height = height
        return

    scaled = max(min_space, int(height * line_space_scale + 0.5))
    if height - scaled > max_remove:
        line_range.target_height = height - max_remove
    else:
        line_range.target_height = scaled


def _grow_back(ranges: Sequence[LineRange], shortfall: int, total_removed: int) -> int:
    total_inc = 0
    for line_range in ranges:
        if not line_range.is_background:
            continue
        removed = line_range.removed
        inc = min(removed, removed * shortfall // total_removed)
        line_range.target_height += inc
        total_inc += inc
    return total_inc


def allocate_target_heights(
    ranges: Sequence[LineRange],
    width: int,
    *,
    width_ratio: float,
    height_ratio: float,
    line_space_scale: float,
    min_space: int,
    max_remove: int,
) -> Allocation:
    """Assign ``target_height`` to every range and return the output height."""
    for line_range in ranges:
        shrink_range(line_range, line_space_scale, min_space, max_remove)
    total = sum(r.target_height for r in ranges)
    shrunk_height = total

    min_target_height = int(height_ratio * width / width_ratio)

    iterations = 0
    while total < min_target_height and iterations < MAX_GROWTH_ITERATIONS:
        total_removed = sum(r.removed for r in ranges if r.is_background)
        if total_removed == 0:
            break

        total_inc = _grow_back(ranges, min_target_height - total, total_removed)
        total = sum(r.target_height for r in ranges)
        iterations += 1

        if total_inc <= total // 100:
            break

    return Allocation(
        output_height=total,
        shrunk_height=shrunk_height,
        min_target_height=min_target_height,
        iterations=iterations,
    )


__all__ = ["MAX_GROWTH_ITERATIONS", "Allocation", "allocate_target_heights", "shrink_range"]
