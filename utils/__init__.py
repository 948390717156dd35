"""Utility functions and helpers."""

from .errors import SmashSpeedError, ConfigurationError, FrameSourceError, DetectorError
from .report import FrameRecord, AnalysisResult

__all__ = ['SmashSpeedError', 'ConfigurationError', 'FrameSourceError', 'DetectorError',
           'FrameRecord', 'AnalysisResult']
