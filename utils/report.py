"""Frame record and analysis result data classes."""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from utils.speed import peak_speed


@dataclass(frozen=True)
class FrameRecord:
    """Per-frame outcome of the tracking pipeline.

    Attributes:
        timestamp: Presentation time of the frame in seconds
        bounding_box: Accepted box normalized to [0, 1] of the frame size as
            (x, y, width, height), or None when no candidate was accepted
        speed_kph: Instantaneous speed in km/h, None until the track has a velocity
        tracked_point: Estimated shuttlecock position in source-frame pixels,
            None while the estimator is uninitialized
    """
    timestamp: float
    bounding_box: Optional[Tuple[float, float, float, float]] = None
    speed_kph: Optional[float] = None
    tracked_point: Optional[Tuple[float, float]] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the frame record
        """
        return {
            'timestamp': self.timestamp,
            'bounding_box': list(self.bounding_box) if self.bounding_box is not None else None,
            'speed_kph': self.speed_kph,
            'tracked_point': list(self.tracked_point) if self.tracked_point is not None else None
        }

    @staticmethod
    def from_dict(data: Dict) -> 'FrameRecord':
        box = data.get('bounding_box')
        point = data.get('tracked_point')
        return FrameRecord(
            timestamp=float(data['timestamp']),
            bounding_box=tuple(float(v) for v in box) if box is not None else None,
            speed_kph=data.get('speed_kph'),
            tracked_point=tuple(float(v) for v in point) if point is not None else None
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Complete result of one processing run.

    Attributes:
        frames: Ordered frame records, one per processed frame
        frame_rate: Nominal frame rate of the source video
        frame_width: Source frame width in pixels
        frame_height: Source frame height in pixels
        meters_per_pixel: Calibration scale used for the run
        cancelled: Whether the run stopped early on a cancellation request
    """
    frames: Tuple[FrameRecord, ...] = field(default_factory=tuple)
    frame_rate: float = 0.0
    frame_width: int = 0
    frame_height: int = 0
    meters_per_pixel: float = 0.0
    cancelled: bool = False

    @property
    def peak_speed_kph(self) -> float:
        """Highest speed reported on any frame, 0.0 if none."""
        return peak_speed(frame.speed_kph for frame in self.frames)

    @property
    def detected_frames(self) -> int:
        return sum(1 for frame in self.frames if frame.bounding_box is not None)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the analysis result
        """
        return {
            'frame_rate': self.frame_rate,
            'frame_width': self.frame_width,
            'frame_height': self.frame_height,
            'meters_per_pixel': self.meters_per_pixel,
            'cancelled': self.cancelled,
            'total_frames': len(self.frames),
            'detected_frames': self.detected_frames,
            'peak_speed_kph': self.peak_speed_kph,
            'frames': [frame.to_dict() for frame in self.frames]
        }

    @staticmethod
    def from_dict(data: Dict) -> 'AnalysisResult':
        """Rebuild a result from its dictionary form (e.g. a saved report)."""
        return AnalysisResult(
            frames=tuple(FrameRecord.from_dict(f) for f in data.get('frames', [])),
            frame_rate=float(data['frame_rate']),
            frame_width=int(data['frame_width']),
            frame_height=int(data['frame_height']),
            meters_per_pixel=float(data['meters_per_pixel']),
            cancelled=bool(data.get('cancelled', False))
        )
