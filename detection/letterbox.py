"""Letterbox resizing and its inverse coordinate mapping.

The detector sees a fixed square input. Frames are scaled uniformly to fit
inside it, centred, and the remainder is padded with neutral gray. Boxes
predicted in that square are mapped back to the source frame by
``unletterbox_box``, the exact inverse of ``letterbox_box``.
"""

from typing import Tuple

import cv2
import numpy as np

from detection.detection import PixelBox

# YOLOv5 letterbox padding color
PAD_COLOR = (114, 114, 114)


def letterbox_params(input_size: Tuple[int, int],
                     frame_size: Tuple[int, int]) -> Tuple[float, float, float]:
    """Compute the scale and padding of the letterbox transform.

    Args:
        input_size: Detector input size as (width, height)
        frame_size: Source frame size as (width, height)

    Returns:
        Tuple of (scale, pad_x, pad_y)
    """
    in_w, in_h = input_size
    frame_w, frame_h = frame_size

    scale = min(in_w / frame_w, in_h / frame_h)
    pad_x = (in_w - frame_w * scale) / 2
    pad_y = (in_h - frame_h * scale) / 2

    return scale, pad_x, pad_y


def letterbox_box(box: Tuple[float, float, float, float],
                  input_size: Tuple[int, int],
                  frame_size: Tuple[int, int]) -> Tuple[float, float, float, float]:
    """Map a box from source-frame pixels into detector-input pixels."""
    scale, pad_x, pad_y = letterbox_params(input_size, frame_size)
    x, y, w, h = box
    return (x * scale + pad_x, y * scale + pad_y, w * scale, h * scale)


def unletterbox_box(box: Tuple[float, float, float, float],
                    input_size: Tuple[int, int],
                    frame_size: Tuple[int, int]) -> PixelBox:
    """Map a box from detector-input pixels back to source-frame pixels.

    Args:
        box: Corner-form box (x, y, width, height) in detector-input pixels
        input_size: Detector input size as (width, height)
        frame_size: Source frame size as (width, height)

    Returns:
        PixelBox in source-frame pixel coordinates
    """
    scale, pad_x, pad_y = letterbox_params(input_size, frame_size)
    x, y, w, h = box
    return PixelBox(
        x=(x - pad_x) / scale,
        y=(y - pad_y) / scale,
        width=w / scale,
        height=h / scale
    )


def letterbox_image(frame: np.ndarray, input_size: Tuple[int, int]) -> np.ndarray:
    """Resize a frame into the detector input square, preserving aspect ratio.

    Args:
        frame: Source frame as numpy array (H x W x C)
        input_size: Detector input size as (width, height)

    Returns:
        Letterboxed image of shape (input height, input width, C)
    """
    frame_h, frame_w = frame.shape[:2]
    in_w, in_h = input_size
    scale, pad_x, pad_y = letterbox_params(input_size, (frame_w, frame_h))

    new_w = int(round(frame_w * scale))
    new_h = int(round(frame_h * scale))
    if (new_w, new_h) != (frame_w, frame_h):
        resized = cv2.resize(frame, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    else:
        resized = frame

    # Split padding so the image stays centred; odd remainders go right/bottom
    left = int(round(pad_x - 0.1))
    top = int(round(pad_y - 0.1))
    right = in_w - new_w - left
    bottom = in_h - new_h - top

    return cv2.copyMakeBorder(resized, top, bottom, left, right,
                              cv2.BORDER_CONSTANT, value=PAD_COLOR)
