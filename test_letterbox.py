"""Tests for the letterbox transform and its inverse coordinate mapping."""

import numpy as np
import pytest

from detection.detection import PixelBox
from detection.letterbox import (PAD_COLOR, letterbox_box, letterbox_image,
                                 letterbox_params, unletterbox_box)


@pytest.mark.parametrize("frame_size", [(1920, 1080), (1080, 1920), (640, 480), (640, 640), (333, 777)])
@pytest.mark.parametrize("input_size", [(640, 640), (416, 416)])
def test_box_round_trip(frame_size, input_size):
    box = (frame_size[0] * 0.3, frame_size[1] * 0.6, 17.5, 9.25)

    forward = letterbox_box(box, input_size, frame_size)
    back = unletterbox_box(forward, input_size, frame_size)

    assert back.as_tuple() == pytest.approx(box, abs=1e-9)


def test_params_for_landscape_frame():
    scale, pad_x, pad_y = letterbox_params((640, 640), (1920, 1080))

    assert scale == pytest.approx(1 / 3)
    assert pad_x == pytest.approx(0.0)
    assert pad_y == pytest.approx(140.0)


def test_unletterbox_removes_padding_then_scales():
    # 1920x1080 in 640x640: scale 1/3, 140 px of padding above the image
    box = unletterbox_box((100.0, 150.0, 10.0, 20.0), (640, 640), (1920, 1080))

    assert box == PixelBox(x=300.0, y=30.0, width=30.0, height=60.0)


def test_letterbox_image_pads_with_gray_and_keeps_content_centred():
    frame = np.full((1080, 1920, 3), 200, dtype=np.uint8)

    image = letterbox_image(frame, (640, 640))

    assert image.shape == (640, 640, 3)
    assert tuple(image[0, 320]) == PAD_COLOR
    assert tuple(image[639, 320]) == PAD_COLOR
    assert tuple(image[320, 320]) == (200, 200, 200)
    # Content band is rows 140..499
    assert tuple(image[141, 5]) == (200, 200, 200)
    assert tuple(image[138, 5]) == PAD_COLOR


def test_letterbox_image_same_size_is_unchanged():
    frame = np.random.default_rng(0).integers(0, 255, (640, 640, 3), dtype=np.uint8)

    image = letterbox_image(frame, (640, 640))

    assert np.array_equal(image, frame)


def test_pixel_box_normalization():
    box = PixelBox(64.0, 48.0, 32.0, 24.0)

    normalized = box.normalized(640, 480)

    assert normalized == pytest.approx((0.1, 0.1, 0.05, 0.05))
    assert PixelBox.from_normalized(normalized, 640, 480).as_tuple() == pytest.approx(box.as_tuple())
    assert box.center == (80.0, 60.0)
