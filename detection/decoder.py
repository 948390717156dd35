"""Decoding of raw detector output into candidate boxes."""

import logging
from typing import List

import numpy as np

from detection.detection import Detection
from tracking.iou import calculate_iou
from utils.errors import ConfigurationError, DetectorError

logger = logging.getLogger(__name__)

# Attribute layout of one anchor row: cx, cy, w, h, objectness, class_prob
NUM_ATTRIBUTES = 6


def non_max_suppression(detections: List[Detection], iou_threshold: float) -> List[Detection]:
    """Collapse overlapping duplicates by greedy suppression.
    
    Repeatedly keeps the most confident remaining box and discards every
    other box whose IoU with it exceeds the threshold.
    
    Args:
        detections: Candidate boxes in any order
        iou_threshold: Overlap above which a lower-confidence box is dropped
        
    Returns:
        Surviving boxes sorted by confidence, highest first
    """
    ordered = sorted(detections, key=lambda d: d.confidence, reverse=True)
    active = [True] * len(ordered)
    selected = []
    
    for i, detection in enumerate(ordered):
        if not active[i]:
            continue
        selected.append(detection)
        for j in range(i + 1, len(ordered)):
            if active[j] and calculate_iou(detection.bbox, ordered[j].bbox) > iou_threshold:
                active[j] = False
    
    return selected


class DetectionDecoder:
    """Turns a raw per-anchor tensor into candidate boxes.
    
    Attributes:
        confidence_threshold: Minimum objectness * class probability to keep an anchor
        iou_threshold: Overlap threshold for duplicate suppression
    """
    
    def __init__(self, confidence_threshold: float = 0.25, iou_threshold: float = 0.45):
        """Initialize the decoder.
        
        Args:
            confidence_threshold: Minimum combined confidence (default: 0.25)
            iou_threshold: IoU above which duplicates are suppressed (default: 0.45)
            
        Raises:
            ConfigurationError: If a threshold lies outside [0, 1]
        """
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ConfigurationError(f"confidence_threshold must be in [0, 1], got {confidence_threshold}")
        if not 0.0 <= iou_threshold <= 1.0:
            raise ConfigurationError(f"iou_threshold must be in [0, 1], got {iou_threshold}")
        self.confidence_threshold = confidence_threshold
        self.iou_threshold = iou_threshold
    
    def decode(self, raw_output: np.ndarray) -> List[Detection]:
        """Decode raw detector output for one frame.
        
        Args:
            raw_output: Array reshapeable to [num_anchors, 6] with rows
                (cx, cy, w, h, objectness, class_prob) in detector-input pixels.
                A leading batch dimension of 1 is accepted.
                
        Returns:
            Candidate boxes after thresholding and suppression; empty when
            nothing in the frame passes the threshold
                
        Raises:
            DetectorError: If the output is not numeric, is a scalar, or
                its rows have fewer than six attributes
        """
        try:
            raw = np.asarray(raw_output, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise DetectorError(f"Malformed detector output: {e}") from e
        if raw.ndim == 0:
            raise DetectorError("Malformed detector output: expected an array, got a scalar")
        if raw.size == 0:
            return []
        if raw.ndim == 1:
            # Flat buffer laid out anchor by anchor
            if raw.size % NUM_ATTRIBUTES != 0:
                raise DetectorError(f"Malformed detector output: flat buffer of {raw.size} "
                                    f"values is not a multiple of {NUM_ATTRIBUTES}")
            raw = raw.reshape(-1, NUM_ATTRIBUTES)
        else:
            raw = raw.reshape(-1, raw.shape[-1])
        if raw.shape[1] < NUM_ATTRIBUTES:
            raise DetectorError(f"Malformed detector output: expected {NUM_ATTRIBUTES} "
                                f"attributes per anchor, got {raw.shape[1]}")
        
        confidences = raw[:, 4] * raw[:, 5]
        keep = confidences >= self.confidence_threshold
        
        detections = []
        for row, confidence in zip(raw[keep], confidences[keep]):
            cx, cy, w, h = row[:4]
            detections.append(Detection(
                bbox=(float(cx - w / 2), float(cy - h / 2), float(w), float(h)),
                confidence=float(confidence),
                class_id=0
            ))
        
        survivors = non_max_suppression(detections, self.iou_threshold)
        logger.debug("Decoded %d anchors above threshold, %d after suppression",
                     len(detections), len(survivors))
        return survivors
