"""Rebuild speeds after the per-frame boxes have been edited."""

from dataclasses import replace
from typing import Dict, Optional

from detection.detection import PixelBox
from tracking.track import Track
from utils.report import AnalysisResult
from utils.speed import pixels_per_frame_to_kph


def recalculate_speeds(result: AnalysisResult, tracking_config: Optional[Dict] = None) -> AnalysisResult:
    """Rerun a fresh estimator over the (possibly edited) boxes of a result.

    Edited boxes are trusted, so no gating is applied: every present box is a
    measurement. Timestamps and boxes are kept; speeds and tracked points are
    recomputed with the same first-frame rule as live processing.

    Args:
        result: Analysis result whose boxes may have been added, moved or removed
        tracking_config: Optional 'tracking' config section with noise settings

    Returns:
        New AnalysisResult with recomputed speeds and tracked points
    """
    tracking_config = tracking_config or {}
    track = Track.create(
        process_noise=tracking_config.get('process_noise', 1e-4),
        measurement_noise=tracking_config.get('measurement_noise', 0.01),
        initial_position_variance=tracking_config.get('initial_position_variance', 1.0),
        initial_velocity_variance=tracking_config.get('initial_velocity_variance', 1000.0),
        # Gaps in edited data are deliberate, never abandon the track
        max_missed_frames=0
    )

    frames = []
    for record in result.frames:
        was_initialized = track.initialized
        track.predict()

        if record.bounding_box is not None:
            pixel_box = PixelBox.from_normalized(record.bounding_box, result.frame_width, result.frame_height)
            track.update(pixel_box.center)
        else:
            track.mark_missed()

        snapshot = track.current_state()
        speed_kph = None
        if was_initialized and snapshot is not None:
            speed_kph = pixels_per_frame_to_kph(snapshot.speed, result.frame_rate, result.meters_per_pixel)

        frames.append(replace(
            record,
            speed_kph=speed_kph,
            tracked_point=snapshot.point if snapshot is not None else None
        ))

    return replace(result, frames=tuple(frames))
