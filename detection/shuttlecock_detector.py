"""Shuttlecock detector using YOLO object detection."""

from typing import Tuple
import numpy as np
from ultralytics import YOLO

from detection.letterbox import letterbox_image
from utils.errors import DetectorError


class ShuttlecockDetector:
    """Runs a single-class YOLO model on letterboxed frames.
    
    The model sees the frame letterboxed into a fixed square, so every box it
    returns is expressed in that square's pixel space. Output is the raw
    per-anchor tensor consumed by DetectionDecoder.
    
    Attributes:
        model: Loaded YOLO model
        input_size: Detector input size as (width, height)
        min_confidence: Confidence floor passed to the model itself
    """
    
    def __init__(self, model_path: str, input_size: int = 640, min_confidence: float = 0.01):
        """Initialize the shuttlecock detector.
        
        Args:
            model_path: Path to the YOLO model weights file
            input_size: Side of the square detector input in pixels (default: 640)
            min_confidence: Confidence floor for the model's own filtering; final
                thresholding happens in the decoder (default: 0.01)
        """
        self.model = YOLO(model_path)
        self.input_size: Tuple[int, int] = (input_size, input_size)
        self.min_confidence = min_confidence
    
    def detect_raw(self, frame: np.ndarray) -> np.ndarray:
        """Run inference on one frame.
        
        Args:
            frame: Input frame as numpy array (BGR format)
            
        Returns:
            Array of shape [num_anchors, 6] with rows
            (cx, cy, w, h, objectness, class_prob) in detector-input pixels
            
        Raises:
            DetectorError: If preprocessing or inference fails
        """
        try:
            image = letterbox_image(frame, self.input_size)
            results = self.model(image, imgsz=self.input_size[0], conf=self.min_confidence, verbose=False)
        except Exception as e:
            raise DetectorError(f"Inference failed: {e}") from e
        
        rows = []
        for result in results:
            boxes = result.boxes
            if boxes is None or len(boxes) == 0:
                continue
            xywh = boxes.xywh.cpu().numpy()  # center form, detector-input pixels
            conf = boxes.conf.cpu().numpy().reshape(-1, 1)
            # Ultralytics reports a single fused score; treat class probability as 1
            rows.append(np.hstack([xywh, conf, np.ones_like(conf)]))
        
        if not rows:
            return np.zeros((0, 6), dtype=np.float32)
        return np.vstack(rows).astype(np.float32)
