"""
Shared helpers for building small synthetic frames and sheets.
"""

import numpy as np
import pytest


def solid(width: int, height: int, color=(255, 255, 255, 255)) -> np.ndarray:
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[:, :] = color
    return frame


def numbered_frames(count: int, width: int = 8, height: int = 6) -> list[np.ndarray]:
    """Frames that differ from each other in every pixel, with a per-pixel gradient."""
    frames = []
    for i in range(count):
        frame = np.zeros((height, width, 4), dtype=np.uint8)
        ys, xs = np.mgrid[0:height, 0:width]
        frame[:, :, 0] = (i * 17) % 256
        frame[:, :, 1] = xs * 9
        frame[:, :, 2] = ys * 13
        frame[:, :, 3] = 255
        frames.append(frame)
    return frames


@pytest.fixture
def make_solid():
    return solid


@pytest.fixture
def make_frames():
    return numbered_frames
