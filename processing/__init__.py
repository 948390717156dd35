"""Processing module driving the per-frame speed estimation loop."""

from .progress import CancellationToken, ProcessingProgress, ProgressReporter
from .video_processor import VideoProcessor

__all__ = ['CancellationToken', 'ProcessingProgress', 'ProgressReporter', 'VideoProcessor']
