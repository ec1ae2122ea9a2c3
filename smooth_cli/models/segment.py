"""
Planning model definitions.

Immutable records describing what to download: stream keys that select a
track within a stream element, and the segments produced by the planner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class StreamKey(NamedTuple):
    """Selects one track variant within one stream element."""

    stream_index: int
    track_index: int

    def __str__(self) -> str:
        return f"{self.stream_index}:{self.track_index}"


@dataclass(frozen=True, slots=True)
class SegmentRequest:
    """
    Ready-to-fetch request descriptor handed to the transport layer.

    SmoothStreaming fragments are addressed by URL alone, so `headers` and
    `byte_range` stay empty for manifests parsed by this package.
    """

    url: str
    headers: tuple[tuple[str, str], ...] = ()
    byte_range: tuple[int, int] | None = None

    def header_dict(self) -> dict[str, str]:
        headers = dict(self.headers)
        if self.byte_range is not None:
            start, end = self.byte_range
            headers["Range"] = f"bytes={start}-{end}"
        return headers


@dataclass(frozen=True, slots=True)
class Segment:
    """
    One planned unit of download work derived from a single chunk.
    """

    start_time_us: int
    request: SegmentRequest
    stream_key: StreamKey
    chunk_index: int

    @property
    def url(self) -> str:
        return self.request.url
