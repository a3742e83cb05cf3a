"""
Shared-palette colour reduction for a set of frames.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy.cluster.vq import kmeans2, vq    # type: ignore

from spritesheet_editor.logging_config import get_logger

log = get_logger(__name__)

OPAQUE_THRESHOLD = 128


def build_palette(
    frames: Sequence[np.ndarray],
    k: int,
    iterations: int = 3,
    seed: int | None = None,
) -> np.ndarray | None:
    """
    Cluster the opaque pixels of all frames into k colours.

    Returns:
        (k', 3) float array of centroids, or None if no frame has an opaque pixel
    """
    if k < 1:
        raise ValueError(f"k must be positive, got {k}")

    samples = [f[f[:, :, 3] > OPAQUE_THRESHOLD][:, :3] for f in frames]
    pixels = np.concatenate(samples).astype(np.float64) if samples else np.empty((0, 3))
    if len(pixels) == 0:
        return None

    # A handful of iterations is enough for pixel art; initial centroids are sampled pixels
    centroids, _labels = kmeans2(pixels, min(k, len(pixels)), iter=iterations, minit="points", seed=seed)
    return centroids


def quantize_frames(
    frames: Sequence[np.ndarray],
    k: int,
    iterations: int = 3,
    seed: int | None = None,
) -> list[np.ndarray]:
    """
    Reduce all frames to one shared palette of at most k colours.

    Only pixels with alpha above 128 are clustered and remapped; alpha is untouched.

    Args:
        frames: RGBA frames
        k: Palette size
        iterations: k-means iterations
        seed: Random seed for reproducible palettes

    Returns:
        New frames. If no frame has opaque pixels, unchanged copies are returned.
    """
    palette = build_palette(frames, k, iterations, seed)
    if palette is None:
        return [f.copy() for f in frames]

    rounded = np.clip(np.rint(palette), 0, 255).astype(np.uint8)
    out = []
    for frame in frames:
        result = frame.copy()
        opaque = frame[:, :, 3] > OPAQUE_THRESHOLD
        rgb = frame[opaque][:, :3].astype(np.float64)
        if len(rgb):
            codes, _ = vq(rgb, palette.astype(np.float64))
            result[opaque, :3] = rounded[codes]
        out.append(result)

    log.info("Quantized %d frame(s) to %d colour(s)", len(out), len(palette))
    return out
