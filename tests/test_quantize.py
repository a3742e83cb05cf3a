"""
Tests for shared-palette k-means quantization.
"""

import numpy as np
import pytest

from spritesheet_editor.quantize import build_palette, quantize_frames


def test_two_colours_survive_with_k2(make_solid):
    a = make_solid(4, 4, (250, 10, 10, 255))
    b = make_solid(4, 4, (10, 10, 250, 255))
    out = quantize_frames([a, b], k=2, seed=1)
    assert np.array_equal(out[0], a)
    assert np.array_equal(out[1], b)


def test_palette_is_shared_and_bounded(make_frames):
    frames = make_frames(3, 16, 16)
    out = quantize_frames(frames, k=4, seed=7)

    colours = set()
    for frame in out:
        colours |= {tuple(p) for p in frame[:, :, :3].reshape(-1, 3)}
    assert len(colours) <= 4, "all frames share one palette of at most k colours"


def test_translucent_pixels_untouched(make_solid):
    frame = make_solid(4, 4, (200, 100, 50, 255))
    frame[0, 0] = (1, 2, 3, 100)
    out = quantize_frames([frame], k=1, seed=0)
    assert tuple(out[0][0, 0]) == (1, 2, 3, 100)
    assert (out[0][:, :, 3] == frame[:, :, 3]).all(), "alpha is never changed"


def test_no_opaque_pixels(make_solid):
    frame = make_solid(3, 3, (9, 9, 9, 0))
    assert build_palette([frame], k=3) is None
    out = quantize_frames([frame], k=3)
    assert np.array_equal(out[0], frame)
    assert out[0] is not frame


def test_invalid_k(make_solid):
    with pytest.raises(ValueError):
        quantize_frames([make_solid(2, 2)], k=0)


def test_large_frame_maps_to_nearest_palette_entry():
    """Every opaque pixel of a full-size frame lands on its closest centroid."""
    rng = np.random.default_rng(3)
    frame = rng.integers(0, 256, (512, 512, 4), dtype=np.uint8)
    frame[:, :, 3] = 255

    palette = build_palette([frame], k=64, seed=5)
    out = quantize_frames([frame], k=64, seed=5)[0]

    rounded = np.clip(np.rint(palette), 0, 255).astype(np.uint8)
    sample = frame[::37, ::41, :3].reshape(-1, 3).astype(np.float64)
    nearest = np.argmin(((sample[:, None, :] - palette[None, :, :]) ** 2).sum(axis=2), axis=1)
    assert np.array_equal(out[::37, ::41, :3].reshape(-1, 3), rounded[nearest])
