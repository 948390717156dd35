"""Unit conversion and calibration helpers for shuttlecock speed."""

import math
from typing import Iterable, Optional, Tuple

from utils.errors import ConfigurationError

# m/s -> km/h
MPS_TO_KPH = 3.6


def validate_scale(meters_per_pixel: float) -> float:
    """Check a calibration scale and return it as a float.

    Args:
        meters_per_pixel: Real-world length of one source-frame pixel

    Returns:
        The scale as a float

    Raises:
        ConfigurationError: If the scale is not a finite positive number
    """
    try:
        scale = float(meters_per_pixel)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Calibration scale must be a number, got {meters_per_pixel!r}")

    if not math.isfinite(scale) or scale <= 0:
        raise ConfigurationError(f"Calibration scale must be positive, got {meters_per_pixel!r}")

    return scale


def pixels_per_frame_to_kph(speed_px_per_frame: float, fps: float, meters_per_pixel: float) -> float:
    """Convert a pixel velocity magnitude into km/h.

    Args:
        speed_px_per_frame: Velocity magnitude in source-frame pixels per frame
        fps: Frame rate of the source video
        meters_per_pixel: Calibration scale

    Returns:
        Speed in kilometres per hour
    """
    pixels_per_second = speed_px_per_frame * fps
    meters_per_second = pixels_per_second * meters_per_pixel
    return meters_per_second * MPS_TO_KPH


def scale_from_reference(distance_m: float,
                         point1: Tuple[float, float],
                         point2: Tuple[float, float]) -> float:
    """Derive meters-per-pixel from a known real-world distance.

    The two points are the ends of the reference distance, marked in
    source-frame pixel coordinates.

    Args:
        distance_m: Real-world distance between the points in metres
        point1: First end point (x, y) in pixels
        point2: Second end point (x, y) in pixels

    Returns:
        Calibration scale in metres per pixel

    Raises:
        ConfigurationError: If the distance is not positive or the points coincide
    """
    if distance_m is None or distance_m <= 0:
        raise ConfigurationError(f"Reference distance must be positive, got {distance_m!r}")

    pixel_distance = math.hypot(point2[0] - point1[0], point2[1] - point1[1])
    if pixel_distance < 1e-9:
        raise ConfigurationError("Reference points must not coincide")

    return validate_scale(distance_m / pixel_distance)


def peak_speed(speeds: Iterable[Optional[float]]) -> float:
    """Return the largest present speed, or 0.0 when none is present."""
    present = [s for s in speeds if s is not None]
    return max(present) if present else 0.0
