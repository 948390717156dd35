"""Exception types raised by the speed estimation pipeline."""


class SmashSpeedError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(SmashSpeedError):
    """Invalid calibration scale, thresholds or missing video metadata.

    Raised before any frame is processed.
    """


class FrameSourceError(SmashSpeedError):
    """The frame source failed while decoding frames.

    Fatal for the run: any frame records produced so far are discarded.
    """


class DetectorError(SmashSpeedError):
    """The detector failed on a single frame.

    Never fatal: the frame is treated as having zero candidates.
    """
