"""
Flood fill and magic-wand region selection.

A pixel belongs to a region when it is 4-connected to the seed through pixels
whose RGB colour lies within `tolerance` (Euclidean distance) of the seed
pixel's colour. Alpha is not compared.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator

import numpy as np

from spritesheet_editor.raster import ensure_rgba


class SelectionMode(str, Enum):
    REPLACE = "replace"
    UNION = "union"
    SUBTRACT = "subtract"


def color_distance_map(buffer: np.ndarray, seed: tuple[int, int, int]) -> np.ndarray:
    """Euclidean RGB distance of every pixel to the seed colour."""
    diff = buffer[:, :, :3].astype(np.int32) - np.asarray(seed[:3], dtype=np.int32)
    return np.sqrt(np.sum(diff * diff, axis=2))


def flood_fill(buffer: np.ndarray, origin: tuple[int, int], tolerance: float) -> np.ndarray:
    """
    Collect the connected region around origin.

    Uses an explicit stack, so region size is not limited by the recursion depth.
    Each pixel is visited at most once.

    Args:
        buffer: RGBA frame
        origin: Seed pixel as (x, y)
        tolerance: Maximum Euclidean RGB distance from the seed colour

    Returns:
        Boolean mask of shape (height, width), True for pixels in the region

    Raises:
        IndexError: If origin lies outside the buffer.
    """
    ensure_rgba(buffer)
    height, width = buffer.shape[:2]
    x0, y0 = int(origin[0]), int(origin[1])
    if not (0 <= x0 < width and 0 <= y0 < height):
        raise IndexError(f"origin ({x0}, {y0}) outside {width}x{height} frame")

    # Candidate pixels, decided up front against the seed colour
    within = (color_distance_map(buffer, tuple(buffer[y0, x0, :3])) <= tolerance).tolist()
    visited = [[False] * width for _ in range(height)]
    region = np.zeros((height, width), dtype=bool)

    stack = [(x0, y0)]
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        if visited[y][x]:
            continue
        visited[y][x] = True

        if within[y][x]:
            region[y, x] = True
            stack.extend(((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)))

    return region


class Selection:
    """
    A set of absolute (x, y) pixel coordinates within one frame.

    Stored as a boolean mask so membership tests and merges stay cheap.
    """

    def __init__(self, width: int, height: int, mask: np.ndarray | None = None):
        if mask is None:
            mask = np.zeros((height, width), dtype=bool)
        elif mask.shape != (height, width):
            raise ValueError(f"mask shape {mask.shape} does not match {width}x{height}")
        self.width = width
        self.height = height
        self.mask = mask.astype(bool, copy=True)

    def __len__(self) -> int:
        return int(np.count_nonzero(self.mask))

    def __bool__(self) -> bool:
        return bool(self.mask.any())

    def __contains__(self, point: object) -> bool:
        try:
            x, y = point  # type: ignore[misc]
        except (TypeError, ValueError):
            return False
        return 0 <= x < self.width and 0 <= y < self.height and bool(self.mask[y, x])

    def __iter__(self) -> Iterator[tuple[int, int]]:
        ys, xs = np.nonzero(self.mask)
        return ((int(x), int(y)) for y, x in zip(ys, xs))

    def points(self) -> set[tuple[int, int]]:
        return set(self)

    def merge(self, region: np.ndarray, mode: SelectionMode) -> None:
        mode = SelectionMode(mode)
        if mode is SelectionMode.REPLACE:
            self.mask = region.copy()
        elif mode is SelectionMode.UNION:
            self.mask |= region
        else:
            self.mask &= ~region

    def clear(self) -> None:
        self.mask[:] = False


class RegionSelector:
    """Magic wand: holds the transient selection for the active frame."""

    def __init__(self):
        self.selection: Selection | None = None

    def select(
        self,
        buffer: np.ndarray,
        origin: tuple[int, int],
        tolerance: float,
        mode: SelectionMode | str = SelectionMode.REPLACE,
    ) -> Selection:
        """
        Flood-select from origin and merge the region into the current selection.

        A previous selection made on a frame of a different size is discarded first.
        """
        region = flood_fill(buffer, origin, tolerance)
        height, width = region.shape
        if self.selection is None or (self.selection.width, self.selection.height) != (width, height):
            self.selection = Selection(width, height)
        self.selection.merge(region, SelectionMode(mode))
        return self.selection

    def clear(self) -> None:
        self.selection = None

    @property
    def has_selection(self) -> bool:
        return self.selection is not None and bool(self.selection)
