"""Tests for reading frames from a video file."""

import logging

import cv2
import numpy as np
import pytest

from processing.frame_source import VideoFrameSource
from utils.errors import FrameSourceError

NUM_FRAMES = 10


@pytest.fixture
def short_video(tmp_path):
    """Write a ten-frame MJPG clip."""
    video_path = str(tmp_path / 'short.avi')
    writer = cv2.VideoWriter(video_path, cv2.VideoWriter_fourcc(*'MJPG'), 30.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")

    for i in range(NUM_FRAMES):
        writer.write(np.full((48, 64, 3), i * 20, dtype=np.uint8))
    writer.release()

    return video_path


def read_all(source):
    with source:
        return [timestamp for _, timestamp in source]


def test_reads_every_frame_with_increasing_timestamps(short_video):
    timestamps = read_all(VideoFrameSource(short_video))

    assert len(timestamps) == NUM_FRAMES
    assert all(b > a for a, b in zip(timestamps, timestamps[1:]))


def test_stream_ending_far_short_of_frame_count_is_a_failure(short_video):
    source = VideoFrameSource(short_video)
    # The container claims far more frames than can actually be decoded
    source.frame_count = 100

    with pytest.raises(FrameSourceError, match="10 of 100"):
        read_all(source)


def test_small_shortfall_within_tolerance_only_warns(short_video, caplog):
    source = VideoFrameSource(short_video, missing_frame_tolerance=0.5)
    source.frame_count = NUM_FRAMES + 4

    with caplog.at_level(logging.WARNING, logger='processing.frame_source'):
        timestamps = read_all(source)

    assert len(timestamps) == NUM_FRAMES
    assert "10 of 14" in caplog.text


def test_missing_file_is_a_frame_source_error(tmp_path):
    with pytest.raises(FrameSourceError):
        VideoFrameSource(str(tmp_path / 'missing.avi'))
