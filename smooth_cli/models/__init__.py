"""
Data Models Layer.

This package contains the immutable manifest and segment structures consumed
by the planner, plus the Pydantic configuration model and session statistics.
"""

from .config import DownloadConfig
from .manifest import Manifest, ProtectionElement, StreamElement, TrackFormat
from .segment import Segment, SegmentRequest, StreamKey
from .stats import DownloadStats

__all__ = [
    "DownloadConfig",
    "DownloadStats",
    "Manifest",
    "ProtectionElement",
    "Segment",
    "SegmentRequest",
    "StreamElement",
    "StreamKey",
    "TrackFormat",
]
