"""
Core application engine for planning and executing segment downloads.

`plan_segments` is the pure planner that expands a manifest into segments.
The `DownloadManager` composes a manifest loader, a plan strategy and the
`SegmentProcessor`, which handles each individual segment.
"""

from .planner import plan_segments
from .selection import StreamKeySelection, parse_stream_key, parse_stream_keys

__all__ = [
    "StreamKeySelection",
    "parse_stream_key",
    "parse_stream_keys",
    "plan_segments",
]
