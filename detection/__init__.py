"""Detection module for shuttlecock candidates."""

from .detection import Detection, PixelBox
from .decoder import DetectionDecoder, non_max_suppression
from .letterbox import letterbox_box, unletterbox_box, letterbox_image

__all__ = ['Detection', 'PixelBox', 'DetectionDecoder', 'non_max_suppression',
           'letterbox_box', 'unletterbox_box', 'letterbox_image']
