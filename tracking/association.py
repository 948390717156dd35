"""Detection-to-track association with a physical plausibility gate."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from detection.detection import Detection, PixelBox
from detection.letterbox import unletterbox_box
from tracking.track import Track
from utils.errors import ConfigurationError
from utils.speed import pixels_per_frame_to_kph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate box mapped to frame pixels with its association score."""
    detection: Detection
    pixel_box: PixelBox
    score: float


@dataclass(frozen=True)
class GateDecision:
    """The candidate accepted for a frame.
    
    Attributes:
        detection: Accepted candidate in detector-input space
        pixel_box: The same box in source-frame pixels
        score: Association score of the candidate
        speed_kph: Speed the track would report after this update, None when
            the candidate seeds a new track
    """
    detection: Detection
    pixel_box: PixelBox
    score: float
    speed_kph: Optional[float] = None


class AssociationGate:
    """Chooses at most one candidate per frame to feed the track.
    
    Candidates are ranked by a mix of detector confidence and closeness to
    the predicted position. A track that has not been seeded accepts the best
    candidate outright; a live track accepts the best candidate whose
    resulting speed lies inside the plausible envelope.
    
    Attributes:
        confidence_weight: Weight of detector confidence in the score
        proximity_weight: Weight of closeness to the prediction in the score
        proximity_divisor: Frame width is divided by this to get the distance at
            which proximity drops to zero
        min_speed_kph: Slowest plausible speed once the track has moved
        max_speed_kph: Fastest plausible speed
    """
    
    # Proximity score used when there is no prediction to measure against
    NEUTRAL_PROXIMITY = 0.5
    
    def __init__(self, confidence_weight: float = 0.3, proximity_weight: float = 0.7,
                 proximity_divisor: float = 4.0, min_speed_kph: float = 5.0,
                 max_speed_kph: float = 450.0):
        """Initialize the gate.
        
        Args:
            confidence_weight: Score weight of confidence (default: 0.3)
            proximity_weight: Score weight of proximity (default: 0.7)
            proximity_divisor: Proximity normaliser divisor (default: 4.0)
            min_speed_kph: Lower speed bound in km/h (default: 5.0)
            max_speed_kph: Upper speed bound in km/h (default: 450.0)
            
        Raises:
            ConfigurationError: If weights are negative or the envelope is empty
        """
        if confidence_weight < 0 or proximity_weight < 0:
            raise ConfigurationError("Score weights must be non-negative")
        if proximity_divisor <= 0:
            raise ConfigurationError(f"proximity_divisor must be positive, got {proximity_divisor}")
        if min_speed_kph < 0 or max_speed_kph <= min_speed_kph:
            raise ConfigurationError(
                f"Speed envelope must satisfy 0 <= min < max, got [{min_speed_kph}, {max_speed_kph}]")
        
        self.confidence_weight = confidence_weight
        self.proximity_weight = proximity_weight
        self.proximity_divisor = proximity_divisor
        self.min_speed_kph = min_speed_kph
        self.max_speed_kph = max_speed_kph
    
    def rank(self, detections: List[Detection], predicted: Optional[Tuple[float, float]],
             input_size: Tuple[int, int], frame_size: Tuple[int, int]) -> List[ScoredCandidate]:
        """Map candidates to frame pixels and sort them by score.
        
        Args:
            detections: Decoded candidates in detector-input space
            predicted: Predicted track position, or None before seeding
            input_size: Detector input size as (width, height)
            frame_size: Source frame size as (width, height)
            
        Returns:
            Scored candidates, highest score first
        """
        scored = []
        for detection in detections:
            pixel_box = unletterbox_box(detection.bbox, input_size, frame_size)
            proximity = self._proximity_score(pixel_box, predicted, frame_size[0])
            score = self.confidence_weight * detection.confidence + self.proximity_weight * proximity
            scored.append(ScoredCandidate(detection=detection, pixel_box=pixel_box, score=score))
        
        scored.sort(key=lambda c: c.score, reverse=True)
        return scored
    
    def select(self, detections: List[Detection], track: Track,
               predicted: Optional[Tuple[float, float]],
               input_size: Tuple[int, int], frame_size: Tuple[int, int],
               fps: float, meters_per_pixel: float) -> Optional[GateDecision]:
        """Pick the candidate to apply to the track this frame.
        
        The track itself is never modified; each hypothesis is evaluated on an
        independent copy of its estimator.
        
        Args:
            detections: Decoded candidates for the frame
            track: The live track (already advanced by predict for this frame)
            predicted: Position returned by this frame's predict, or None
            input_size: Detector input size as (width, height)
            frame_size: Source frame size as (width, height)
            fps: Frame rate used to convert per-frame velocity
            meters_per_pixel: Calibration scale
            
        Returns:
            GateDecision for the accepted candidate, or None if nothing passes
        """
        candidates = self.rank(detections, predicted, input_size, frame_size)
        if not candidates:
            return None
        
        if not track.initialized:
            # Nothing to validate against yet; the best candidate seeds the track
            best = candidates[0]
            return GateDecision(detection=best.detection, pixel_box=best.pixel_box, score=best.score)
        
        for candidate in candidates:
            hypothesis = track.kalman_filter.copy()
            hypothesis.update(candidate.pixel_box.center)
            speed_px = hypothesis.current_state().speed
            speed_kph = pixels_per_frame_to_kph(speed_px, fps, meters_per_pixel)
            
            if speed_kph > self.max_speed_kph:
                logger.debug("Rejected candidate at %s: %.1f km/h above maximum",
                             candidate.pixel_box.center, speed_kph)
                continue
            if track.has_motion and speed_kph < self.min_speed_kph:
                logger.debug("Rejected candidate at %s: %.1f km/h below minimum",
                             candidate.pixel_box.center, speed_kph)
                continue
            
            return GateDecision(detection=candidate.detection, pixel_box=candidate.pixel_box,
                                score=candidate.score, speed_kph=speed_kph)
        
        return None
    
    def _proximity_score(self, pixel_box: PixelBox, predicted: Optional[Tuple[float, float]],
                         frame_width: int) -> float:
        """Closeness of a box center to the prediction, in [0, 1].
        
        Args:
            pixel_box: Candidate box in source-frame pixels
            predicted: Predicted position, or None
            frame_width: Source frame width in pixels
            
        Returns:
            1.0 at the prediction falling linearly to 0.0 at frame_width / divisor;
            NEUTRAL_PROXIMITY when there is no prediction
        """
        if predicted is None:
            return self.NEUTRAL_PROXIMITY
        
        cx, cy = pixel_box.center
        distance = float(np.hypot(cx - predicted[0], cy - predicted[1]))
        normaliser = frame_width / self.proximity_divisor
        return max(0.0, 1.0 - distance / normaliser)
