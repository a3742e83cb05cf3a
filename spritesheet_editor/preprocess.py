"""
Preparing reference images before they are sent to the generation service,
and undoing the padding on the way back.
"""

from __future__ import annotations

import cv2
import numpy as np

from spritesheet_editor.config import (
    REFERENCE_FALLBACK_BACKGROUND,
    REFERENCE_PADDED_CONTENT,
    REFERENCE_PADDED_SIZE,
    REFERENCE_SIZE,
)
from spritesheet_editor.raster import ensure_rgba


def corner_background(image: np.ndarray) -> tuple[int, int, int]:
    """
    Guess a fill colour from the four corners.

    If any corner is translucent the image already has a transparent background,
    and the fixed fallback colour is used instead of the corner average.
    """
    h, w = image.shape[:2]
    corners = np.array([image[0, 0], image[0, w - 1], image[h - 1, 0], image[h - 1, w - 1]], dtype=np.int32)
    if (corners[:, 3] < 255).any():
        return REFERENCE_FALLBACK_BACKGROUND
    avg = np.rint(corners[:, :3].mean(axis=0)).astype(int)
    return int(avg[0]), int(avg[1]), int(avg[2])


def prepare_reference_image(image: np.ndarray, padding: bool = False, flip: bool = False) -> np.ndarray:
    """
    Place a reference image on the square canvas the service expects.

    Args:
        image: RGBA input of any size
        padding: Use the 768px canvas with the content limited to the central 384px
        flip: Mirror horizontally

    Returns:
        Opaque RGBA image of 512x512 (768x768 with padding)
    """
    ensure_rgba(image)
    h, w = image.shape[:2]
    if w == 0 or h == 0:
        raise ValueError("reference image is empty")

    canvas_dim = REFERENCE_PADDED_SIZE if padding else REFERENCE_SIZE
    content_dim = REFERENCE_PADDED_CONTENT if padding else REFERENCE_SIZE

    bg = corner_background(image)
    canvas = np.empty((canvas_dim, canvas_dim, 3), dtype=np.float64)
    canvas[:, :] = bg

    scale = min(content_dim / w, content_dim / h)
    new_w, new_h = max(1, int(w * scale)), max(1, int(h * scale))
    scaled = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_NEAREST)

    x = (canvas_dim - new_w) // 2
    y = (canvas_dim - new_h) // 2
    alpha = scaled[:, :, 3:4].astype(np.float64) / 255
    canvas[y:y + new_h, x:x + new_w] = scaled[:, :, :3] * alpha + canvas[y:y + new_h, x:x + new_w] * (1 - alpha)

    out = cv2.cvtColor(np.rint(canvas).astype(np.uint8), cv2.COLOR_RGB2RGBA)
    if flip:
        out = np.ascontiguousarray(out[:, ::-1])
    return out


def unpad_reference_image(image: np.ndarray) -> np.ndarray:
    """
    Recover the 512x512 content of a prepared reference image.

    A 768px wide image is treated as padded and its central 384px square is cropped first.
    """
    ensure_rgba(image)
    if image.shape[1] == REFERENCE_PADDED_SIZE:
        offset = (REFERENCE_PADDED_SIZE - REFERENCE_PADDED_CONTENT) // 2
        image = np.ascontiguousarray(
            image[offset:offset + REFERENCE_PADDED_CONTENT, offset:offset + REFERENCE_PADDED_CONTENT])
    return cv2.resize(image, (REFERENCE_SIZE, REFERENCE_SIZE), interpolation=cv2.INTER_NEAREST)
