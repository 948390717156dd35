"""Constant-velocity Kalman filter for the shuttlecock position."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

# Measurement matrix (H) - we only measure position [x, y]
H = np.array([
    [1, 0, 0, 0],
    [0, 1, 0, 0],
], dtype=np.float64)


@dataclass(eq=False)
class FilterState:
    """Mean and covariance of a tracking filter.

    Attributes:
        x: State vector [x, y, vx, vy] in source-frame pixels (per frame for velocity)
        P: 4x4 state covariance
    """
    x: np.ndarray
    P: np.ndarray

    def copy(self) -> 'FilterState':
        return FilterState(x=self.x.copy(), P=self.P.copy())


@dataclass(frozen=True)
class EstimatorSnapshot:
    """Read-only view of the current estimate."""
    point: Tuple[float, float]
    velocity: Tuple[float, float]
    speed: float  # pixels per frame


class KalmanFilter:
    """2D constant-velocity estimator with position measurements.

    The filter is either uninitialized (no observation yet, no state) or
    tracking (``FilterState`` holds mean and covariance). The first update
    seeds the state directly; later updates apply the usual Kalman
    correction.

    Attributes:
        process_noise: Added to each diagonal covariance term per predict step
        measurement_noise: Isotropic variance of a position measurement
    """

    def __init__(self, process_noise: float = 1e-4, measurement_noise: float = 0.01,
                 initial_position_variance: float = 1.0, initial_velocity_variance: float = 1000.0):
        """Initialize the filter in the uninitialized state.

        Args:
            process_noise: Process noise scalar q (default: 1e-4)
            measurement_noise: Measurement noise scalar r (default: 0.01)
            initial_position_variance: Initial variance of x and y (default: 1.0)
            initial_velocity_variance: Initial variance of vx and vy (default: 1000.0)
        """
        self.process_noise = process_noise
        self.measurement_noise = measurement_noise
        self.initial_covariance = np.diag([
            initial_position_variance,
            initial_position_variance,
            initial_velocity_variance,
            initial_velocity_variance,
        ]).astype(np.float64)

        self._state: Optional[FilterState] = None

    @property
    def initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> Optional[FilterState]:
        """Copy of the current state, or None while uninitialized."""
        return self._state.copy() if self._state is not None else None

    def predict(self, dt: float = 1.0) -> Optional[Tuple[float, float]]:
        """Predict state forward by dt frames.

        Args:
            dt: Time step in frames (default: 1.0)

        Returns:
            Predicted position (x, y), or None if no observation has been made yet
        """
        if self._state is None:
            return None

        # State Transition Matrix (F)
        # x = x + vx*dt
        F = np.array([
            [1, 0, dt, 0],
            [0, 1, 0, dt],
            [0, 0, 1, 0],
            [0, 0, 0, 1]
        ], dtype=np.float64)

        s = self._state
        s.x = F @ s.x
        s.P = F @ s.P @ F.T + np.eye(4) * self.process_noise

        return float(s.x[0]), float(s.x[1])

    def update(self, measurement: Tuple[float, float]) -> Tuple[float, float]:
        """Update with a new position measurement.

        Args:
            measurement: Observed position (x, y) in source-frame pixels

        Returns:
            Corrected position (x, y)
        """
        z = np.asarray(measurement, dtype=np.float64).reshape(2)

        if self._state is None:
            # First observation seeds the state, velocity unknown (zero)
            self._state = FilterState(
                x=np.array([z[0], z[1], 0.0, 0.0]),
                P=self.initial_covariance.copy()
            )
            return float(z[0]), float(z[1])

        s = self._state
        P = s.P

        # Residual covariance S = H P H^T + R, inverted in closed form
        s00 = P[0, 0] + self.measurement_noise
        s01 = P[0, 1]
        s10 = P[1, 0]
        s11 = P[1, 1] + self.measurement_noise
        det = s00 * s11 - s01 * s10
        S_inv = np.array([
            [s11, -s01],
            [-s10, s00]
        ]) / det

        # Optimal Kalman Gain K = P H^T S^-1
        K = P @ H.T @ S_inv

        y = z - H @ s.x
        s.x = s.x + K @ y
        s.P = (np.eye(4) - K @ H) @ P

        return float(s.x[0]), float(s.x[1])

    def current_state(self) -> Optional[EstimatorSnapshot]:
        """Return position, velocity and speed, or None while uninitialized."""
        if self._state is None:
            return None
        x, y, vx, vy = (float(v) for v in self._state.x)
        return EstimatorSnapshot(
            point=(x, y),
            velocity=(vx, vy),
            speed=float(np.hypot(vx, vy))
        )

    def copy(self) -> 'KalmanFilter':
        """Create an independent deep copy for hypothetical updates."""
        clone = KalmanFilter.__new__(KalmanFilter)
        clone.process_noise = self.process_noise
        clone.measurement_noise = self.measurement_noise
        clone.initial_covariance = self.initial_covariance.copy()
        clone._state = self._state.copy() if self._state is not None else None
        return clone

    def reset(self) -> None:
        """Abandon the track; the next update reseeds from scratch."""
        self._state = None
