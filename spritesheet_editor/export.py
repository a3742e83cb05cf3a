"""
Exporting curated animations as a spritesheet PNG or an animated GIF/APNG.
"""

from __future__ import annotations

import io
from typing import Collection, Sequence

import cv2
import numpy as np
from PIL import Image

from spritesheet_editor.codec import reconstruct_spritesheet
from spritesheet_editor.config import EXPORT_BACKGROUND, EXPORT_SIZE, MAX_FPS, MIN_FPS
from spritesheet_editor.errors import EmptyAnimation
from spritesheet_editor.logging_config import get_logger
from spritesheet_editor.raster import encode_png, ensure_rgba

log = get_logger(__name__)

ANIMATION_FORMATS = ("GIF", "PNG")


def active_frames(frames: Sequence[np.ndarray], excluded: Collection[int]) -> list[np.ndarray]:
    """
    Drop excluded indices, keeping order.

    Raises:
        EmptyAnimation: If nothing is left.
    """
    active = [f for i, f in enumerate(frames) if i not in excluded]
    if not active:
        raise EmptyAnimation("cannot export an empty animation, include at least one frame")
    return active


def export_spritesheet(frames: Sequence[np.ndarray], excluded: Collection[int] = ()) -> bytes:
    """Pack the non-excluded frames into a 4-column sheet and encode it as PNG."""
    sheet = reconstruct_spritesheet(active_frames(frames, excluded))
    log.info("Exported spritesheet %dx%d", sheet.shape[1], sheet.shape[0])
    return encode_png(sheet)


def composite_frame(
    frame: np.ndarray,
    size: tuple[int, int] = EXPORT_SIZE,
    background: tuple[int, int, int] = EXPORT_BACKGROUND,
) -> np.ndarray:
    """
    Fit a frame into an opaque canvas.

    The frame is scaled with nearest-neighbour sampling to the largest size that
    fits, centred, and alpha-blended over the background colour.

    Args:
        frame: RGBA frame
        size: Output (width, height)
        background: RGB fill colour

    Returns:
        RGB array of shape (height, width, 3)
    """
    ensure_rgba(frame)
    out_w, out_h = size
    canvas = np.empty((out_h, out_w, 3), dtype=np.uint8)
    canvas[:, :] = background[:3]

    frame_h, frame_w = frame.shape[:2]
    if frame_w == 0 or frame_h == 0:
        return canvas

    scale = min(out_w / frame_w, out_h / frame_h)
    new_w = max(1, int(frame_w * scale))
    new_h = max(1, int(frame_h * scale))
    scaled = cv2.resize(frame, (new_w, new_h), interpolation=cv2.INTER_NEAREST)

    x = (out_w - new_w) // 2
    y = (out_h - new_h) // 2
    region = canvas[y:y + new_h, x:x + new_w].astype(np.float64)
    alpha = scaled[:, :, 3:4].astype(np.float64) / 255
    blended = scaled[:, :, :3] * alpha + region * (1 - alpha)
    canvas[y:y + new_h, x:x + new_w] = np.rint(blended).astype(np.uint8)
    return canvas


def export_animated_sequence(
    frames: Sequence[np.ndarray],
    excluded: Collection[int] = (),
    fps: int = 12,
    background: tuple[int, int, int] = EXPORT_BACKGROUND,
    size: tuple[int, int] = EXPORT_SIZE,
    fmt: str = "GIF",
) -> bytes:
    """
    Encode the non-excluded frames as a looping animation.

    Pillow merges identical consecutive frames into one frame whose duration
    is the sum of theirs, so the file can hold fewer frames than were passed
    in. Total playback time is always len(active frames) * 1000 / fps ms.

    Args:
        frames: RGBA frames
        excluded: Indices to leave out
        fps: Playback rate; each frame lasts 1000 / fps ms
        background: RGB colour behind transparent pixels
        size: Output (width, height)
        fmt: "GIF", or "PNG" for a lossless animated PNG

    Returns:
        Encoded animation bytes

    Raises:
        EmptyAnimation: If every frame is excluded.
        ValueError: If fps or fmt is invalid.
    """
    if not MIN_FPS <= fps <= MAX_FPS:
        raise ValueError(f"fps must be in [{MIN_FPS}, {MAX_FPS}], got {fps}")
    fmt = fmt.upper()
    if fmt not in ANIMATION_FORMATS:
        raise ValueError(f"unsupported animation format {fmt}, expected one of {ANIMATION_FORMATS}")

    composited = [composite_frame(f, size, background) for f in active_frames(frames, excluded)]
    delay = int(round(1000 / fps))

    images = [Image.fromarray(c) for c in composited]
    if fmt == "GIF":
        images = [img.convert("P", palette=Image.Palette.ADAPTIVE, colors=256) for img in images]

    buf = io.BytesIO()
    images[0].save(
        buf,
        format=fmt,
        save_all=True,
        append_images=images[1:],
        duration=delay,
        loop=0,
    )
    log.info("Exported %d-frame %s at %d fps (%dx%d)", len(images), fmt, fps, size[0], size[1])
    return buf.getvalue()
