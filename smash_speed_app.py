"""Main application for shuttlecock speed estimation."""

import os
import json
from concurrent.futures import Executor
from typing import Callable, Dict, Optional
from pathlib import Path

from detection.decoder import DetectionDecoder
from processing.frame_source import VideoFrameSource
from processing.progress import CancellationToken, ProcessingProgress
from processing.video_processor import VideoProcessor
from tracking.association import AssociationGate
from utils.errors import ConfigurationError
from utils.report import AnalysisResult


class SmashSpeedApp:
    """Main application wiring detection, tracking and speed estimation.
    
    Builds every component from a configuration dictionary and runs the
    per-frame pipeline over video files.
    
    Attributes:
        config: Configuration dictionary
        detector: Detector producing raw per-anchor output
        decoder: DetectionDecoder for candidate boxes
        gate: AssociationGate choosing the candidate per frame
        processor: VideoProcessor running the frame loop
    """
    
    def __init__(self, config: Dict, detector=None):
        """Initialize the speed estimation application.
        
        Args:
            config: Configuration dictionary with all settings
            detector: Optional detector to use instead of loading the YOLO model
            
        Raises:
            ConfigurationError: If a setting is out of range
        """
        self.config = config
        
        detection_config = config.get('detection', {})
        input_size = int(detection_config.get('input_size', 640))
        if input_size <= 0:
            raise ConfigurationError(f"input_size must be positive, got {input_size}")
        
        if detector is None:
            # Imported here so the pipeline stays usable without the inference stack
            from detection.shuttlecock_detector import ShuttlecockDetector
            detector = ShuttlecockDetector(
                model_path=detection_config.get('model_path', 'best.pt'),
                input_size=input_size
            )
        self.detector = detector
        
        self.decoder = DetectionDecoder(
            confidence_threshold=detection_config.get('confidence_threshold', 0.25),
            iou_threshold=detection_config.get('iou_threshold', 0.45)
        )
        
        gate_config = config.get('gate', {})
        self.gate = AssociationGate(
            confidence_weight=gate_config.get('confidence_weight', 0.3),
            proximity_weight=gate_config.get('proximity_weight', 0.7),
            proximity_divisor=gate_config.get('proximity_divisor', 4.0),
            min_speed_kph=gate_config.get('min_speed_kph', 5.0),
            max_speed_kph=gate_config.get('max_speed_kph', 450.0)
        )
        
        self.processor = VideoProcessor(
            decoder=self.decoder,
            gate=self.gate,
            tracking_config=config.get('tracking', {}),
            input_size=(input_size, input_size)
        )
    
    def process_video(self, video_path: str, meters_per_pixel: float,
                      progress_callback: Optional[Callable[[ProcessingProgress], None]] = None,
                      cancellation: Optional[CancellationToken] = None,
                      progress_executor: Optional[Executor] = None) -> AnalysisResult:
        """Process a complete video file through the pipeline.
        
        Args:
            video_path: Path to input video file
            meters_per_pixel: Calibration scale for the video
            progress_callback: Optional listener for progress updates
            cancellation: Optional cancellation token
            progress_executor: Optional executor the callback is dispatched to
            
        Returns:
            AnalysisResult for the video
            
        Raises:
            ConfigurationError: For an invalid scale or unusable video metadata
            FrameSourceError: If the video cannot be opened or decoded
        """
        print(f"Processing video: {video_path}")
        
        video_config = self.config.get('video', {})
        with VideoFrameSource(video_path,
                              video_config.get('missing_frame_tolerance', 0.1)) as source:
            print(f"Video properties: {source.width}x{source.height} @ {source.fps:.2f} FPS, "
                  f"{source.frame_count} frames")
            result = self.processor.process(
                source, self.detector, meters_per_pixel,
                progress_callback=progress_callback,
                cancellation=cancellation,
                progress_executor=progress_executor
            )
        
        print(f"\n{'='*60}")
        print("Processing cancelled" if result.cancelled else "Processing complete!")
        print(f"{'='*60}")
        print(f"Total frames processed: {len(result.frames)}")
        print(f"Frames with a detection: {result.detected_frames}")
        print(f"Peak speed: {result.peak_speed_kph:.1f} km/h")
        print(f"{'='*60}\n")
        
        output_config = self.config.get('output', {})
        if output_config.get('output_report', True):
            report_path = self.save_report(result, video_path)
            print(f"Report saved: {report_path}")
        
        return result
    
    def save_report(self, result: AnalysisResult, video_path: str) -> str:
        """Save an AnalysisResult to a JSON file.
        
        Args:
            result: AnalysisResult to save
            video_path: Path to video file (used for naming report)
            
        Returns:
            Path to saved report file
        """
        output_config = self.config.get('output', {})
        output_dir = output_config.get('output_directory', 'output')
        
        reports_dir = os.path.join(output_dir, 'reports')
        os.makedirs(reports_dir, exist_ok=True)
        
        video_name = Path(video_path).stem
        report_path = os.path.join(reports_dir, f"{video_name}_analysis.json")
        
        report = result.to_dict()
        report['video_path'] = video_path
        with open(report_path, 'w') as f:
            json.dump(report, f, indent=2)
        
        return report_path
