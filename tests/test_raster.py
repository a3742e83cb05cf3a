"""
Tests for raster surfaces and image decoding.
"""

import base64

import cv2
import numpy as np
import pytest

from spritesheet_editor.errors import DecodeFailure
from spritesheet_editor.raster import RasterSurface, decode_image, encode_png, new_frame, to_data_url


def test_png_round_trip_keeps_rgba_order(make_frames):
    frame = make_frames(1)[0]
    frame[0, 0] = (255, 0, 0, 128)
    decoded = decode_image(encode_png(frame))
    assert np.array_equal(decoded, frame)
    assert tuple(decoded[0, 0]) == (255, 0, 0, 128), "channels stay RGBA"


def test_data_url_decoding(make_frames):
    frame = make_frames(1)[0]
    assert np.array_equal(decode_image(to_data_url(frame)), frame)


def test_opaque_and_grey_inputs_become_rgba():
    bgr = np.zeros((3, 3, 3), dtype=np.uint8)
    bgr[:, :] = (255, 0, 0)  # blue in BGR
    ok, buf = cv2.imencode(".png", bgr)
    rgba = decode_image(buf.tobytes())
    assert tuple(rgba[0, 0]) == (0, 0, 255, 255)

    ok, buf = cv2.imencode(".png", np.full((2, 2), 77, dtype=np.uint8))
    assert tuple(decode_image(buf.tobytes())[1, 1]) == (77, 77, 77, 255)


def test_decode_failures():
    with pytest.raises(DecodeFailure):
        decode_image(b"")
    with pytest.raises(DecodeFailure):
        decode_image(b"definitely not an image")
    with pytest.raises(DecodeFailure):
        decode_image("data:image/png;base64,@@@")
    with pytest.raises(DecodeFailure):
        decode_image("data:image/png," + base64.b64encode(b"x").decode())


def test_surface_operations():
    surface = RasterSurface.blank(4, 3)
    surface.fill_rect(-1, -1, 3, 3, (1, 2, 3, 255))
    assert surface.get_pixel(1, 1) == (1, 2, 3, 255)
    assert surface.get_pixel(2, 2) == (0, 0, 0, 0)

    surface.set_pixel(3, 2, (9, 9, 9, 9))
    assert surface.get_pixel(3, 2) == (9, 9, 9, 9)
    with pytest.raises(IndexError):
        surface.get_pixel(4, 0)
    with pytest.raises(ValueError):
        surface.set_pixel(0, 0, (300, 0, 0, 0))

    stamp = new_frame(2, 2, (5, 5, 5, 5))
    surface.draw_surface(stamp, 3, 2)
    assert surface.get_pixel(3, 2) == (5, 5, 5, 5), "drawing is clipped, not rejected"
    assert surface.crop(0, 0, 2, 2).shape == (2, 2, 4)
