"""Per-frame orchestration of detection, tracking and speed estimation."""

import logging
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from detection.decoder import DetectionDecoder
from tracking.association import AssociationGate
from tracking.track import Track
from utils.errors import ConfigurationError, DetectorError
from utils.report import AnalysisResult, FrameRecord
from utils.speed import pixels_per_frame_to_kph, validate_scale
from processing.progress import CancellationToken, ProcessingProgress, ProgressReporter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunContext:
    """Per-run constants shared by every frame."""
    fps: float
    frame_size: Tuple[int, int]
    input_size: Tuple[int, int]
    meters_per_pixel: float


class VideoProcessor:
    """Drives one pass over a frame source and produces frame records.
    
    Per frame: predict, detect and decode, gate, update (or coast), derive
    the calibrated speed, record, report progress. Frames are processed
    strictly in order since the track is mutated in place.
    
    The frame source must provide ``fps``, ``width``, ``height`` and
    ``duration`` and iterate over (frame, timestamp) pairs, raising
    FrameSourceError on a decoding failure. The detector must provide
    ``detect_raw(frame)`` returning a [num_anchors, 6] array. Any exception
    it raises is logged and the frame gets no candidates.
    
    Attributes:
        decoder: Turns raw detector output into candidate boxes
        gate: Chooses the candidate to apply each frame
        tracking_config: 'tracking' config section used to build each run's track
        input_size: Detector input size used when the detector does not report one
    """
    
    def __init__(self, decoder: DetectionDecoder, gate: AssociationGate,
                 tracking_config: Optional[Dict] = None, input_size: Tuple[int, int] = (640, 640)):
        """Initialize the video processor.
        
        Args:
            decoder: DetectionDecoder instance
            gate: AssociationGate instance
            tracking_config: Optional dict with process_noise, measurement_noise,
                initial_position_variance, initial_velocity_variance, max_missed_frames
            input_size: Default detector input size as (width, height)
        """
        self.decoder = decoder
        self.gate = gate
        self.tracking_config = tracking_config or {}
        self.input_size = input_size
        
        if self.tracking_config.get('process_noise', 1e-4) < 0:
            raise ConfigurationError("process_noise must be non-negative")
        if self.tracking_config.get('measurement_noise', 0.01) <= 0:
            raise ConfigurationError("measurement_noise must be positive")
    
    def create_track(self) -> Track:
        """Create the empty track a run starts from."""
        return Track.create(
            process_noise=self.tracking_config.get('process_noise', 1e-4),
            measurement_noise=self.tracking_config.get('measurement_noise', 0.01),
            initial_position_variance=self.tracking_config.get('initial_position_variance', 1.0),
            initial_velocity_variance=self.tracking_config.get('initial_velocity_variance', 1000.0),
            max_missed_frames=self.tracking_config.get('max_missed_frames', 5)
        )
    
    def process(self, frame_source, detector, meters_per_pixel: float,
                progress_callback: Optional[Callable[[ProcessingProgress], None]] = None,
                cancellation: Optional[CancellationToken] = None,
                progress_executor: Optional[Executor] = None) -> AnalysisResult:
        """Process every frame of a source.
        
        Args:
            frame_source: Ordered source of (frame, timestamp) pairs with metadata
            detector: Object with detect_raw(frame) returning the raw tensor
            meters_per_pixel: Calibration scale for the whole run
            progress_callback: Optional listener for progress updates
            cancellation: Optional token checked once per frame
            progress_executor: Optional executor the callback is dispatched to
            
        Returns:
            AnalysisResult with one FrameRecord per processed frame; partial
            (and flagged as cancelled) when cancellation was requested
            
        Raises:
            ConfigurationError: For a non-positive scale or missing video metadata
            FrameSourceError: If the frame source fails while reading
            Exception: Whatever the progress callback raised, once the run ends
        """
        scale = validate_scale(meters_per_pixel)
        
        fps = float(getattr(frame_source, 'fps', 0) or 0)
        width = int(getattr(frame_source, 'width', 0) or 0)
        height = int(getattr(frame_source, 'height', 0) or 0)
        if fps <= 0 or width <= 0 or height <= 0:
            raise ConfigurationError(f"Missing frame metadata: {width}x{height} @ {fps} FPS")
        
        input_size = tuple(getattr(detector, 'input_size', self.input_size))
        context = RunContext(fps=fps, frame_size=(width, height), input_size=input_size,
                             meters_per_pixel=scale)
        
        duration = float(getattr(frame_source, 'duration', 0) or 0)
        total_frames = int(round(duration * fps))
        reporter = ProgressReporter(total_frames, progress_callback, progress_executor)
        
        track = self.create_track()
        records: List[FrameRecord] = []
        cancelled = False
        start_time = time.time()
        
        logger.info("Processing %dx%d @ %.2f FPS, ~%d frames, %.5f m/px",
                    width, height, fps, total_frames, scale)
        
        for frame, timestamp in frame_source:
            if cancellation is not None and cancellation.cancelled:
                cancelled = True
                break
            
            records.append(self.process_frame(track, detector, frame, timestamp, context))
            reporter.advance()
        
        reporter.flush()
        
        elapsed_time = time.time() - start_time
        logger.info("Processed %d frames in %.2f s%s (%d resets)", len(records), elapsed_time,
                    " (cancelled)" if cancelled else "", track.resets)
        
        return AnalysisResult(
            frames=tuple(records),
            frame_rate=fps,
            frame_width=width,
            frame_height=height,
            meters_per_pixel=scale,
            cancelled=cancelled
        )
    
    def process_frame(self, track: Track, detector, frame: np.ndarray, timestamp: float,
                      context: RunContext) -> FrameRecord:
        """Run the tracking pipeline on a single frame.
        
        Args:
            track: The run's track, mutated in place
            detector: Object with detect_raw(frame)
            frame: Input video frame
            timestamp: Frame presentation time in seconds
            context: Per-run constants
            
        Returns:
            FrameRecord for the frame
        """
        was_initialized = track.initialized
        
        # Step 1: Predict where the shuttlecock should be
        predicted = track.predict()
        
        # Step 2: Detection - decode candidates; detector failures mean no candidates
        try:
            detections = self._detect(detector, frame)
        except DetectorError as e:
            logger.warning("Detection failed at %.3fs: %s", timestamp, e)
            detections = []
        
        # Step 3: Association - pick at most one plausible candidate
        decision = self.gate.select(
            detections, track, predicted,
            context.input_size, context.frame_size,
            context.fps, context.meters_per_pixel
        )
        
        # Step 4: Update the track, or let it coast on its prediction
        bounding_box = None
        if decision is not None:
            track.update(decision.pixel_box.center)
            bounding_box = decision.pixel_box.normalized(*context.frame_size)
            logger.debug("%.3fs: accepted candidate (conf %.2f, score %.2f) at %s",
                         timestamp, decision.detection.confidence, decision.score,
                         decision.pixel_box.center)
        elif track.mark_missed():
            logger.info("%.3fs: track lost after %d frames without a plausible detection",
                        timestamp, track.max_missed_frames)
        
        # Step 5: Speed is only defined once the track existed before this frame
        snapshot = track.current_state()
        speed_kph = None
        if was_initialized and snapshot is not None:
            speed_kph = pixels_per_frame_to_kph(snapshot.speed, context.fps, context.meters_per_pixel)
        
        return FrameRecord(
            timestamp=float(timestamp),
            bounding_box=bounding_box,
            speed_kph=speed_kph,
            tracked_point=snapshot.point if snapshot is not None else None
        )
    
    def _detect(self, detector, frame: np.ndarray):
        """Run the detector on a frame and decode its candidates.
        
        Raises:
            DetectorError: For any failure inside the detector or the decoder
        """
        try:
            raw_output = detector.detect_raw(frame)
        except DetectorError:
            raise
        except Exception as e:
            raise DetectorError(f"Detector raised {type(e).__name__}: {e}") from e
        return self.decoder.decode(raw_output)
