"""Sequential frame reading from a video file with OpenCV."""

import logging
import os
from typing import Iterator, Tuple

import cv2
import numpy as np

from utils.errors import ConfigurationError, FrameSourceError

logger = logging.getLogger(__name__)


class VideoFrameSource:
    """Yields (frame, timestamp) pairs from a video file.

    Attributes:
        video_path: Path to the input video file
        fps: Nominal frame rate
        width: Frame width in pixels
        height: Frame height in pixels
        frame_count: Frame count reported by the container
        duration: Container duration in seconds
        missing_frame_tolerance: Allowed shortfall against frame_count, as a fraction
    """

    def __init__(self, video_path: str, missing_frame_tolerance: float = 0.1):
        """Open a video file and read its metadata.

        Args:
            video_path: Path to input video file
            missing_frame_tolerance: Fraction of the reported frame count the
                stream may fall short by before reading counts as failed

        Raises:
            FrameSourceError: If the file is missing or cannot be opened
            ConfigurationError: If the video reports no frame rate or size
        """
        self.video_path = video_path
        self.missing_frame_tolerance = missing_frame_tolerance

        if not os.path.isfile(video_path):
            raise FrameSourceError(f"File not found: {video_path}")

        self._cap = cv2.VideoCapture(video_path)
        if not self._cap.isOpened():
            raise FrameSourceError(
                f"Could not open video file (unsupported format or corrupted): {video_path}")

        self.fps = float(self._cap.get(cv2.CAP_PROP_FPS))
        self.width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.frame_count = int(self._cap.get(cv2.CAP_PROP_FRAME_COUNT))

        if self.fps <= 0 or self.width <= 0 or self.height <= 0:
            self._cap.release()
            raise ConfigurationError(
                f"Video has no usable frame metadata: {self.width}x{self.height} @ {self.fps} FPS")

        self.duration = self.frame_count / self.fps if self.frame_count > 0 else 0.0

        logger.info("Opened %s: %dx%d @ %.2f FPS, %d frames",
                    video_path, self.width, self.height, self.fps, self.frame_count)

    def __iter__(self) -> Iterator[Tuple[np.ndarray, float]]:
        """Iterate over frames in presentation order.

        Yields:
            Tuple of (frame in BGR format, timestamp in seconds)

        Raises:
            FrameSourceError: If decoding fails before any frame was read, the
                stream stops well short of the reported frame count, or the
                backend raises during reading
        """
        index = 0
        last_timestamp = -1.0
        try:
            while True:
                ret, frame = self._cap.read()
                if not ret:
                    if index == 0:
                        raise FrameSourceError(f"No frames could be decoded from {self.video_path}")
                    self._check_end_of_stream(index)
                    break

                timestamp = self._cap.get(cv2.CAP_PROP_POS_MSEC) / 1000.0
                if timestamp <= last_timestamp:
                    # Some backends report no usable position; fall back to the frame index
                    timestamp = max(index / self.fps, last_timestamp + 1.0 / self.fps)
                last_timestamp = timestamp

                yield frame, timestamp
                index += 1
        except cv2.error as e:
            raise FrameSourceError(f"Failed to decode frame {index} of {self.video_path}: {e}") from e

    def _check_end_of_stream(self, frames_read: int) -> None:
        """Tell a truncated stream apart from a normal end of stream.

        OpenCV's read() returns False both at the end of the stream and when
        a frame cannot be decoded, so the only signal is how far short of the
        container's frame count reading stopped.

        Raises:
            FrameSourceError: If more frames are missing than the tolerance allows
        """
        if self.frame_count <= 0:
            return
        missing = self.frame_count - frames_read
        allowed = max(1, int(self.frame_count * self.missing_frame_tolerance))
        if missing > allowed:
            raise FrameSourceError(
                f"Decoding stopped after {frames_read} of {self.frame_count} frames in {self.video_path}")
        if missing > 1:
            logger.warning("Stream ended after %d of %d reported frames in %s",
                           frames_read, self.frame_count, self.video_path)

    def release(self) -> None:
        self._cap.release()

    def __enter__(self) -> 'VideoFrameSource':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
