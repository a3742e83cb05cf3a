"""
In-memory raster buffers and image decoding/encoding.

Frames are numpy arrays of shape (height, width, 4), dtype uint8, in RGBA
channel order. OpenCV works in BGR(A), so conversion happens only at the
decode/encode boundary.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path

import cv2
import numpy as np

from spritesheet_editor.errors import DecodeFailure

Color = tuple[int, int, int, int]

TRANSPARENT: Color = (0, 0, 0, 0)


def new_frame(width: int, height: int, color: Color = TRANSPARENT) -> np.ndarray:
    """Create a width x height RGBA buffer filled with color."""
    if width < 0 or height < 0:
        raise ValueError(f"frame size must be non-negative, got {width}x{height}")
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[:, :] = _check_color(color)
    return frame


def ensure_rgba(image: np.ndarray) -> np.ndarray:
    """
    Validate an RGBA frame buffer.

    Raises:
        ValueError: If the array is not (height, width, 4) uint8.
    """
    if not isinstance(image, np.ndarray):
        raise ValueError(f"frame must be a numpy array, got {type(image)}")
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"frame must have shape (height, width, 4), got {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"frame must be uint8, got {image.dtype}")
    return image


def _check_color(color: Color) -> Color:
    if len(color) != 4 or any(not 0 <= int(c) <= 255 for c in color):
        raise ValueError(f"color must be 4 channels in [0, 255], got {color}")
    return tuple(int(c) for c in color)  # type: ignore[return-value]


class RasterSurface:
    """
    Thin pixel-level view over an RGBA buffer.

    The surface does not copy the buffer it wraps; writes go straight into it.
    """

    def __init__(self, buffer: np.ndarray):
        self.buffer = ensure_rgba(buffer)

    @classmethod
    def blank(cls, width: int, height: int, color: Color = TRANSPARENT) -> RasterSurface:
        return cls(new_frame(width, height, color))

    @property
    def width(self) -> int:
        return self.buffer.shape[1]

    @property
    def height(self) -> int:
        return self.buffer.shape[0]

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> Color:
        if not self.contains(x, y):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} surface")
        r, g, b, a = self.buffer[y, x]
        return int(r), int(g), int(b), int(a)

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        if not self.contains(x, y):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} surface")
        self.buffer[y, x] = _check_color(color)

    def fill_rect(self, x: int, y: int, w: int, h: int, color: Color) -> None:
        """Fill a rectangle, clipped to the surface. Empty rectangles are ignored."""
        x1, y1 = max(0, x), max(0, y)
        x2, y2 = min(self.width, x + w), min(self.height, y + h)
        if x2 <= x1 or y2 <= y1:
            return
        self.buffer[y1:y2, x1:x2] = _check_color(color)

    def clear_alpha_rect(self, x: int, y: int, w: int, h: int) -> None:
        """Set alpha to 0 over a clipped rectangle, leaving RGB untouched."""
        x1, y1 = max(0, x), max(0, y)
        x2, y2 = min(self.width, x + w), min(self.height, y + h)
        if x2 <= x1 or y2 <= y1:
            return
        self.buffer[y1:y2, x1:x2, 3] = 0

    def draw_surface(self, other: RasterSurface | np.ndarray, x: int, y: int) -> None:
        """Copy another surface's pixels (alpha included) with its top-left at (x, y)."""
        src = other.buffer if isinstance(other, RasterSurface) else ensure_rgba(other)
        x1, y1 = max(0, x), max(0, y)
        x2 = min(self.width, x + src.shape[1])
        y2 = min(self.height, y + src.shape[0])
        if x2 <= x1 or y2 <= y1:
            return
        self.buffer[y1:y2, x1:x2] = src[y1 - y:y2 - y, x1 - x:x2 - x]

    def crop(self, x: int, y: int, w: int, h: int) -> np.ndarray:
        """Return a copy of the given region. The region must lie inside the surface."""
        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            raise IndexError(f"crop ({x}, {y}, {w}, {h}) outside {self.width}x{self.height} surface")
        return self.buffer[y:y + h, x:x + w].copy()


def _to_rgba(img: np.ndarray) -> np.ndarray:
    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)
    elif img.dtype != np.uint8:
        raise DecodeFailure(f"unsupported sample type {img.dtype}")

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    raise DecodeFailure(f"unsupported channel count {img.shape[2]}")


def decode_data_url(url: str) -> bytes:
    """Extract the payload of a base64 ``data:`` URL."""
    header, sep, payload = url.partition(",")
    if not header.startswith("data:") or not sep:
        raise DecodeFailure("not a data URL")
    if not header.endswith(";base64"):
        raise DecodeFailure("only base64 data URLs are supported")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"invalid base64 payload: {e}") from e


def decode_image(source: bytes | str) -> np.ndarray:
    """
    Decode PNG/JPEG/etc. bytes, or a base64 data URL, into an RGBA frame.

    Raises:
        DecodeFailure: If the bytes are empty, corrupt or in an unsupported layout.
    """
    data = decode_data_url(source) if isinstance(source, str) else source
    if not data:
        raise DecodeFailure("image data is empty")

    try:
        img = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeFailure(f"could not decode image: {e}") from e
    if img is None:
        raise DecodeFailure("could not decode image")
    return _to_rgba(img)


def load_image(path: str | Path) -> np.ndarray:
    """Read and decode an image file into an RGBA frame."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DecodeFailure(f"could not read {path}: {e}") from e
    return decode_image(data)


def encode_png(image: np.ndarray) -> bytes:
    """Encode an RGBA frame as PNG bytes."""
    ensure_rgba(image)
    ok, buf = cv2.imencode(".png", cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA))
    if not ok:
        raise ValueError("PNG encoding failed")
    return buf.tobytes()


def to_data_url(image: np.ndarray) -> str:
    """Encode an RGBA frame as a base64 PNG data URL."""
    return "data:image/png;base64," + base64.b64encode(encode_png(image)).decode("ascii")
