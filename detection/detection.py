"""Detection data classes for shuttlecock candidates."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Detection:
    """A single candidate box produced by the decoder for one frame.

    Attributes:
        bbox: Corner-form box in detector-input pixels as (x, y, width, height)
        confidence: Objectness times class probability (0.0 to 1.0)
        class_id: Numeric class identifier (always 0, single class)
    """
    bbox: Tuple[float, float, float, float]  # (x, y, width, height)
    confidence: float
    class_id: int = 0


@dataclass(frozen=True)
class PixelBox:
    """A candidate box mapped back into source-frame pixel space."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        """Box centre in frame pixels, used as the tracked measurement."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return the box as (x, y, width, height) in frame pixels."""
        return (self.x, self.y, self.width, self.height)

    def normalized(self, frame_width: int, frame_height: int) -> Tuple[float, float, float, float]:
        """Express the box as fractions of the frame size.

        Args:
            frame_width: Source frame width in pixels
            frame_height: Source frame height in pixels

        Returns:
            Box as (x, y, width, height) in [0, 1] frame units
        """
        return (
            self.x / frame_width,
            self.y / frame_height,
            self.width / frame_width,
            self.height / frame_height
        )

    @staticmethod
    def from_normalized(box: Tuple[float, float, float, float],
                        frame_width: int, frame_height: int) -> 'PixelBox':
        x, y, w, h = box
        return PixelBox(x * frame_width, y * frame_height, w * frame_width, h * frame_height)
