"""
Functions for slicing a grid-packed spritesheet into frames and packing frames back.

The generation service always lays frames out in a fixed 4-column grid. Cell size
is derived from the actual sheet, because previews and thumbnails of the same
job come in different resolutions.
"""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from spritesheet_editor.config import GRID_COLUMNS
from spritesheet_editor.errors import InvalidDimensions
from spritesheet_editor.logging_config import get_logger
from spritesheet_editor.raster import RasterSurface, ensure_rgba

log = get_logger(__name__)


def frame_count_for_length(length: int) -> int:
    """
    Convert the job's logical length parameter into a frame count.

    The service counts interpolation steps, so F = (length - 1) / 2.
    """
    frame_count = (int(length) - 1) // 2
    if frame_count < 1:
        raise InvalidDimensions(f"length {length} yields no frames")
    return frame_count


def length_for_frame_count(frame_count: int) -> int:
    """Inverse of frame_count_for_length()."""
    return 2 * frame_count + 1


def grid_shape(frame_count: int, columns: int = GRID_COLUMNS) -> tuple[int, int]:
    """Return (rows, columns) of the grid holding frame_count frames."""
    if frame_count < 1:
        raise InvalidDimensions(f"frame count must be positive, got {frame_count}")
    rows = (frame_count + columns - 1) // columns  # Ceiling division
    return rows, columns


def slice_spritesheet(sheet: np.ndarray, length: int) -> list[np.ndarray]:
    """
    Cut a packed sheet into an ordered list of frames.

    Args:
        sheet: RGBA spritesheet
        length: Logical animation length reported by the job (frame count is (length - 1) / 2)

    Returns:
        Frames in row-major order, each a copy of its grid cell

    Raises:
        InvalidDimensions: If the computed cell width or height is zero.
    """
    ensure_rgba(sheet)
    frame_count = frame_count_for_length(length)
    rows, cols = grid_shape(frame_count)

    cell_w = sheet.shape[1] // cols
    cell_h = sheet.shape[0] // rows
    if cell_w == 0 or cell_h == 0:
        raise InvalidDimensions(
            f"sheet {sheet.shape[1]}x{sheet.shape[0]} is too small for a {cols}x{rows} grid")

    surface = RasterSurface(sheet)
    frames = []
    for i in range(frame_count):
        row, col = divmod(i, cols)
        frames.append(surface.crop(col * cell_w, row * cell_h, cell_w, cell_h))

    log.debug("Sliced %dx%d sheet into %d frames of %dx%d",
              sheet.shape[1], sheet.shape[0], frame_count, cell_w, cell_h)
    return frames


def reconstruct_spritesheet(frames: Sequence[np.ndarray]) -> np.ndarray:
    """
    Pack frames into a 4-column grid sheet.

    The first frame's size is canonical. Cells past the last frame stay fully transparent.

    Raises:
        InvalidDimensions: If no frames are given, or a frame's size differs from the first.
    """
    if len(frames) == 0:
        raise InvalidDimensions("no frames to reconstruct")

    frame_h, frame_w = ensure_rgba(frames[0]).shape[:2]
    if frame_w == 0 or frame_h == 0:
        raise InvalidDimensions("frames have zero size")

    rows, cols = grid_shape(len(frames))
    sheet = RasterSurface.blank(cols * frame_w, rows * frame_h)

    for i, frame in enumerate(frames):
        if ensure_rgba(frame).shape[:2] != (frame_h, frame_w):
            raise InvalidDimensions(
                f"frame {i} is {frame.shape[1]}x{frame.shape[0]}, expected {frame_w}x{frame_h}")
        row, col = divmod(i, cols)
        sheet.draw_surface(frame, col * frame_w, row * frame_h)

    return sheet.buffer


def visualize_grid(sheet: np.ndarray, frame_count: int) -> np.ndarray:
    """
    Draw the slicing grid over a sheet for debugging.

    Args:
        sheet: RGBA spritesheet
        frame_count: Number of frames the sheet holds

    Returns:
        Opaque RGBA image, the sheet blended onto white with magenta cell borders
        and cell numbers
    """
    ensure_rgba(sheet)
    rows, cols = grid_shape(frame_count)
    height, width = sheet.shape[:2]
    cell_w, cell_h = width // cols, height // rows

    # Blend onto a white background so transparent areas stay visible
    bg = np.ones((height, width, 3), dtype=np.uint8) * 255
    alpha = sheet[:, :, 3:4].astype(float) / 255
    vis_img = (sheet[:, :, :3] * alpha + bg * (1 - alpha)).astype(np.uint8)
    vis_img = np.ascontiguousarray(vis_img)

    for r in range(rows + 1):
        y = min(r * cell_h, height - 1)
        cv2.line(vis_img, (0, y), (width, y), (255, 0, 255), 1)  # Magenta

    for c in range(cols + 1):
        x = min(c * cell_w, width - 1)
        cv2.line(vis_img, (x, 0), (x, height), (255, 0, 255), 1)

    font = cv2.FONT_HERSHEY_SIMPLEX
    for i in range(frame_count):
        row, col = divmod(i, cols)
        cv2.putText(vis_img, str(i), (col * cell_w + 3, row * cell_h + 12), font, 0.4, (255, 0, 255), 1)

    return cv2.cvtColor(vis_img, cv2.COLOR_RGB2RGBA)
