"""Track data class holding the single shuttlecock estimate."""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Optional, Tuple

from tracking.kalman_filter import KalmanFilter, EstimatorSnapshot

# Speeds below this many pixels per frame count as standing still
MOTION_EPSILON = 1e-6


@dataclass
class Track:
    """The evolving belief about the shuttlecock across frames.
    
    Wraps the Kalman filter with the bookkeeping the gate and orchestrator
    need: whether the track has moved yet, and how long it has coasted
    without a measurement.
    
    Attributes:
        kalman_filter: Estimator owned exclusively by this track
        max_missed_frames: Consecutive frames without a measurement before the
            track is abandoned (0 keeps it forever)
        position_history: Recent measured positions (last 10)
        hits: Measurements applied since the track was last seeded
        time_since_update: Frames since the last measurement
        has_motion: Whether the track has shown non-zero velocity since seeding
        resets: Number of times the track was abandoned and reseeded
    """
    kalman_filter: KalmanFilter
    max_missed_frames: int = 5
    position_history: Deque[Tuple[float, float]] = field(default_factory=lambda: deque(maxlen=10))
    hits: int = 0
    time_since_update: int = 0
    has_motion: bool = False
    resets: int = 0
    
    @staticmethod
    def create(process_noise: float = 1e-4, measurement_noise: float = 0.01,
               initial_position_variance: float = 1.0, initial_velocity_variance: float = 1000.0,
               max_missed_frames: int = 5) -> 'Track':
        """Create an empty track with a fresh estimator.
        
        Args:
            process_noise: Kalman process noise scalar
            measurement_noise: Kalman measurement noise scalar
            initial_position_variance: Initial variance of the position terms
            initial_velocity_variance: Initial variance of the velocity terms
            max_missed_frames: Coasting frames tolerated before a reset
            
        Returns:
            New Track with an uninitialized estimator
        """
        kf = KalmanFilter(
            process_noise=process_noise,
            measurement_noise=measurement_noise,
            initial_position_variance=initial_position_variance,
            initial_velocity_variance=initial_velocity_variance
        )
        return Track(kalman_filter=kf, max_missed_frames=max_missed_frames)
    
    @property
    def initialized(self) -> bool:
        return self.kalman_filter.initialized
    
    def predict(self, dt: float = 1.0) -> Optional[Tuple[float, float]]:
        """Predict next position using the Kalman filter.
        
        Returns:
            Predicted position (x, y), or None before the first measurement
        """
        return self.kalman_filter.predict(dt)
    
    def update(self, point: Tuple[float, float]) -> None:
        """Update the Kalman filter with a measured position.
        
        Args:
            point: Measured shuttlecock center in source-frame pixels
        """
        self.kalman_filter.update(point)
        
        self.hits += 1
        self.time_since_update = 0
        self.position_history.append(point)
        
        snapshot = self.kalman_filter.current_state()
        if snapshot is not None and snapshot.speed > MOTION_EPSILON:
            self.has_motion = True
    
    def mark_missed(self) -> bool:
        """Record a frame without an accepted measurement.
        
        Returns:
            True if the track coasted too long and was reset
        """
        if not self.initialized:
            return False
        
        self.time_since_update += 1
        if self.max_missed_frames > 0 and self.time_since_update >= self.max_missed_frames:
            self.reset()
            return True
        return False
    
    def reset(self) -> None:
        """Abandon the current estimate so the next detection reseeds it."""
        self.kalman_filter.reset()
        self.position_history.clear()
        self.hits = 0
        self.time_since_update = 0
        self.has_motion = False
        self.resets += 1
    
    def current_state(self) -> Optional[EstimatorSnapshot]:
        return self.kalman_filter.current_state()
