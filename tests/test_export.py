"""
Tests for spritesheet and animation export.
"""

import io

import numpy as np
import pytest
from PIL import Image

from spritesheet_editor.codec import slice_spritesheet
from spritesheet_editor.errors import EmptyAnimation
from spritesheet_editor.export import composite_frame, export_animated_sequence, export_spritesheet
from spritesheet_editor.raster import decode_image


def test_export_spritesheet_filters_excluded(make_frames):
    frames = make_frames(6)
    sheet = decode_image(export_spritesheet(frames, {1, 4}))

    assert sheet.shape == (6, 32, 4), "4 remaining frames fit one row"
    out = slice_spritesheet(sheet, 9)
    for got, want in zip(out, [frames[i] for i in (0, 2, 3, 5)]):
        assert np.array_equal(got, want), "remaining frames keep their order"


def test_export_empty_animation_raises(make_frames):
    frames = make_frames(3)
    with pytest.raises(EmptyAnimation):
        export_spritesheet(frames, {0, 1, 2})
    with pytest.raises(EmptyAnimation):
        export_animated_sequence(frames, {0, 1, 2})


def test_composite_is_nearest_neighbour_on_background(make_solid):
    frame = make_solid(2, 2, (0, 0, 0, 0))
    frame[0, 0] = (255, 0, 0, 255)
    frame[1, 1] = (0, 0, 255, 255)

    out = composite_frame(frame, size=(8, 4), background=(10, 20, 30))
    assert out.shape == (4, 8, 3)
    # Scaled 2x to 4x4, centred horizontally at x = 2..5
    assert (out[:, :2] == (10, 20, 30)).all(), "letterbox is background"
    assert (out[0:2, 2:4] == (255, 0, 0)).all(), "hard edges, no smoothing"
    assert (out[2:4, 4:6] == (0, 0, 255)).all()
    assert (out[0:2, 4:6] == (10, 20, 30)).all(), "transparent pixels show background"


def test_gif_export(make_solid):
    colours = [(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)]
    frames = [make_solid(4, 4, c) for c in colours]

    data = export_animated_sequence(frames, {1}, fps=10, size=(16, 16))
    img = Image.open(io.BytesIO(data))
    assert img.format == "GIF"
    assert img.n_frames == 2
    assert img.info["loop"] == 0, "animation loops forever"
    assert img.info["duration"] == 100, "1000 / fps ms per frame"
    assert img.size == (16, 16)

    firsts = []
    for i in range(img.n_frames):
        img.seek(i)
        firsts.append(img.convert("RGB").getpixel((8, 8)))
    assert firsts == [(255, 0, 0), (0, 0, 255)]


@pytest.mark.parametrize("fmt", ["gif", "png"])
def test_repeated_frames_merge_but_keep_timing(make_solid, fmt):
    """Identical neighbours become one longer frame; total duration is unchanged."""
    colours = [(255, 0, 0, 255), (255, 0, 0, 255), (0, 255, 0, 255)]
    frames = [make_solid(4, 4, c) for c in colours]

    img = Image.open(io.BytesIO(export_animated_sequence(frames, fps=10, size=(8, 8), fmt=fmt)))
    durations = []
    for i in range(img.n_frames):
        img.seek(i)
        durations.append(img.info["duration"])
    assert img.n_frames == 2
    assert sum(durations) == 300, "three frames at 100 ms each"


def test_apng_export_is_lossless(make_frames):
    frames = make_frames(2, 8, 8)
    data = export_animated_sequence(frames, fps=20, size=(8, 8), fmt="png")
    img = Image.open(io.BytesIO(data))
    assert img.n_frames == 2

    img.seek(1)
    got = np.asarray(img.convert("RGB"))
    assert np.array_equal(got, frames[1][:, :, :3])


def test_invalid_animation_arguments(make_frames):
    with pytest.raises(ValueError):
        export_animated_sequence(make_frames(2), fps=0)
    with pytest.raises(ValueError):
        export_animated_sequence(make_frames(2), fps=61)
    with pytest.raises(ValueError):
        export_animated_sequence(make_frames(2), fmt="bmp")
