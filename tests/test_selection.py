"""
Tests for flood fill and magic wand selection.
"""

import numpy as np
import pytest
from scipy import ndimage    # type: ignore

from spritesheet_editor.selection import (
    RegionSelector,
    Selection,
    SelectionMode,
    color_distance_map,
    flood_fill,
)


def test_solid_frame_selects_everything(make_solid):
    """On a single-colour frame, tolerance 0 from any origin selects every pixel."""
    frame = make_solid(7, 5, (10, 20, 30, 255))
    for origin in ((0, 0), (6, 4), (3, 2)):
        mask = flood_fill(frame, origin, 0)
        assert mask.all(), f"origin {origin} should reach every pixel"


def test_alpha_is_ignored(make_solid):
    frame = make_solid(4, 4, (50, 50, 50, 255))
    frame[:2, :, 3] = 0
    assert flood_fill(frame, (0, 0), 0).all(), "alpha differences must not split regions"


def test_fill_stops_at_colour_boundary(make_solid):
    frame = make_solid(6, 6, (255, 255, 255, 255))
    frame[:, 3] = (0, 0, 0, 255)  # vertical wall

    mask = flood_fill(frame, (0, 0), 10)
    assert mask[:, :3].all()
    assert not mask[:, 3:].any(), "fill must not cross the wall"


def test_fill_is_four_connected(make_solid):
    """Pixels touching only diagonally are separate regions."""
    frame = make_solid(2, 2, (0, 0, 0, 255))
    frame[0, 0] = frame[1, 1] = (255, 0, 0, 255)

    mask = flood_fill(frame, (0, 0), 0)
    assert mask.sum() == 1


def test_tolerance_is_euclidean_rgb(make_solid):
    frame = make_solid(3, 1, (100, 100, 100, 255))
    frame[0, 1] = (103, 104, 100, 255)   # distance 5 from the seed
    frame[0, 2] = (100, 100, 100, 255)

    assert flood_fill(frame, (0, 0), 4.9).sum() == 1, "distance 5 is above tolerance 4.9"
    assert flood_fill(frame, (0, 0), 5).sum() == 3, "distance 5 is within tolerance 5"


def test_matches_connected_component_labelling():
    """The explicit-stack fill agrees with scipy's 4-connected labelling."""
    rng = np.random.default_rng(3)
    frame = np.zeros((40, 50, 4), dtype=np.uint8)
    frame[:, :, :3] = rng.choice([0, 200], size=(40, 50, 1))
    frame[:, :, 3] = 255

    origin = (12, 7)
    tolerance = 30
    within = color_distance_map(frame, tuple(frame[origin[1], origin[0], :3])) <= tolerance
    labels, _count = ndimage.label(within)
    expected = labels == labels[origin[1], origin[0]]

    assert np.array_equal(flood_fill(frame, origin, tolerance), expected)


def test_large_frame_does_not_recurse(make_solid):
    """A fill over a large frame completes without hitting recursion limits."""
    frame = make_solid(300, 300, (1, 2, 3, 255))
    assert flood_fill(frame, (150, 150), 0).sum() == 300 * 300


def test_origin_outside_frame(make_solid):
    with pytest.raises(IndexError):
        flood_fill(make_solid(4, 4), (4, 0), 0)


def test_selector_modes(make_solid):
    """replace, union and subtract merge regions into the current selection."""
    frame = make_solid(6, 2, (0, 0, 0, 255))
    frame[:, 2:4] = (255, 0, 0, 255)
    frame[:, 4:] = (0, 0, 255, 255)

    selector = RegionSelector()
    sel = selector.select(frame, (0, 0), 0)
    assert sel.points() == {(x, y) for x in range(2) for y in range(2)}

    sel = selector.select(frame, (5, 1), 0, SelectionMode.UNION)
    assert len(sel) == 8
    assert (4, 0) in sel and (2, 0) not in sel

    sel = selector.select(frame, (0, 1), 0, "subtract")
    assert len(sel) == 4
    assert all(x >= 4 for x, _y in sel)

    sel = selector.select(frame, (3, 0), 0, SelectionMode.REPLACE)
    assert sel.points() == {(2, 0), (3, 0), (2, 1), (3, 1)}

    selector.clear()
    assert not selector.has_selection


def test_selection_is_deterministic(make_frames):
    frame = make_frames(1, 16, 16)[0]
    a = flood_fill(frame, (5, 5), 40)
    b = flood_fill(frame, (5, 5), 40)
    assert np.array_equal(a, b)


def test_selection_bounds():
    sel = Selection(3, 2)
    assert (5, 0) not in sel
    assert (-1, 0) not in sel
    assert "nope" not in sel
    with pytest.raises(ValueError):
        Selection(3, 2, np.zeros((3, 3), dtype=bool))
