"""
Functions for clearing the background around sprites.

Background is whatever is flood-connected to one of the four image corners.
Background-coloured islands enclosed by the sprite are left alone.
"""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from spritesheet_editor.logging_config import get_logger
from spritesheet_editor.raster import ensure_rgba
from spritesheet_editor.selection import flood_fill

log = get_logger(__name__)


def background_mask(frame: np.ndarray, tolerance: float) -> np.ndarray:
    """
    Union of four independent flood fills seeded at the frame corners.

    Each fill compares against its own corner colour.
    """
    ensure_rgba(frame)
    height, width = frame.shape[:2]
    mask = np.zeros((height, width), dtype=bool)
    if width == 0 or height == 0:
        return mask

    for corner in ((0, 0), (width - 1, 0), (0, height - 1), (width - 1, height - 1)):
        mask |= flood_fill(frame, corner, tolerance)
    return mask


def clean_alpha_channel(alpha: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """
    Drop isolated opaque specks left behind in the alpha channel.

    Applies a morphological opening (erosion followed by dilation). Pixels the
    opening turns transparent are cleared; nothing is made more opaque.

    Args:
        alpha: The alpha channel to clean
        kernel_size: Size of the square kernel

    Returns:
        Cleaned alpha channel
    """
    kernel = np.ones((kernel_size, kernel_size), np.uint8)
    opaque = (alpha > 0).astype(np.uint8) * 255
    opened = cv2.morphologyEx(opaque, cv2.MORPH_OPEN, kernel)

    cleaned = alpha.copy()
    cleaned[opened == 0] = 0
    return cleaned


def remove_background_frame(
    frame: np.ndarray,
    tolerance: float,
    despeckle: bool = False,
) -> np.ndarray:
    """Return a copy of frame with its corner-connected background made transparent."""
    out = frame.copy()
    out[background_mask(frame, tolerance), 3] = 0
    if despeckle:
        out[:, :, 3] = clean_alpha_channel(out[:, :, 3])
    return out


def remove_background(
    frames: Sequence[np.ndarray],
    tolerance: float,
    despeckle: bool = False,
) -> list[np.ndarray]:
    """
    Clear the background of every frame.

    The input frames are not modified; the batch is meant to be recorded as a
    single undoable action.

    Args:
        frames: RGBA frames
        tolerance: Maximum Euclidean RGB distance from a corner colour
        despeckle: Also remove isolated opaque specks after clearing

    Returns:
        New frames, in the same order
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")

    cleared = [remove_background_frame(f, tolerance, despeckle) for f in frames]
    log.info("Removed background from %d frame(s) (tolerance %.1f)", len(cleared), tolerance)
    return cleared
