"""
In-memory representation of a parsed SmoothStreaming manifest.

The structures here are immutable once built by the parser. Chunk timing and
fetch addressing live on `StreamElement` so the planner can treat them as
opaque pure functions.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import urljoin

MICROS_PER_SECOND = 1_000_000
DEFAULT_TIMESCALE = 10_000_000

URL_PLACEHOLDER_BITRATE = ("{bitrate}", "{Bitrate}")
URL_PLACEHOLDER_START_TIME = ("{start time}", "{start_time}")

STREAM_TYPE_VIDEO = "video"
STREAM_TYPE_AUDIO = "audio"
STREAM_TYPE_TEXT = "text"


def scale_to_us(value: int, timescale: int) -> int:
    """Converts a timestamp in `timescale` units per second to microseconds."""
    if timescale == MICROS_PER_SECOND:
        return value
    return value * MICROS_PER_SECOND // timescale


@dataclass(frozen=True, slots=True)
class TrackFormat:
    """A single selectable quality level within a stream element."""

    index: int
    bitrate: int
    fourcc: str = ""
    codec_private_data: str = ""
    max_width: int | None = None
    max_height: int | None = None
    sampling_rate: int | None = None
    channels: int | None = None
    language: str | None = None


@dataclass(frozen=True, slots=True)
class ProtectionElement:
    """DRM protection header attached to the manifest."""

    system_id: str
    data: bytes = b""


@dataclass(frozen=True, slots=True)
class StreamElement:
    """
    One logical stream (e.g. all video renditions) and its time-indexed chunks.

    `chunk_start_times` are expressed in `timescale` units, exactly as they
    appear in the manifest, and are used verbatim when building fragment URLs.
    """

    stream_type: str
    name: str
    url_template: str
    base_url: str
    timescale: int
    formats: tuple[TrackFormat, ...]
    chunk_start_times: tuple[int, ...]
    last_chunk_duration: int | None = None
    declared_chunk_count: int | None = None
    subtype: str | None = None
    language: str | None = None
    max_width: int | None = None
    max_height: int | None = None
    display_width: int | None = None
    display_height: int | None = None

    @property
    def chunk_count(self) -> int:
        return len(self.chunk_start_times)

    @property
    def track_count(self) -> int:
        return len(self.formats)

    def get_start_time_us(self, chunk_index: int) -> int:
        """Returns the start time of a chunk in microseconds."""
        return scale_to_us(self.chunk_start_times[chunk_index], self.timescale)

    def get_chunk_duration_us(self, chunk_index: int) -> int | None:
        """
        Returns the duration of a chunk in microseconds, or None when the
        duration of the last chunk is unknown.
        """
        if chunk_index == self.chunk_count - 1:
            if self.last_chunk_duration is None:
                return None
            return scale_to_us(self.last_chunk_duration, self.timescale)
        start = self.chunk_start_times[chunk_index]
        end = self.chunk_start_times[chunk_index + 1]
        return scale_to_us(end - start, self.timescale)

    def get_chunk_index(self, time_us: int) -> int:
        """Returns the index of the chunk that contains the given time."""
        # largest timescale value whose scaled start time is <= time_us
        limit = ((time_us + 1) * self.timescale - 1) // MICROS_PER_SECOND
        return max(0, bisect_right(self.chunk_start_times, limit) - 1)

    def build_request_url(self, track_index: int, chunk_index: int) -> str:
        """
        Builds the fetch URL for a chunk of a track by substituting the
        bitrate and start time placeholders of the element's URL template.
        """
        bitrate = str(self.formats[track_index].bitrate)
        start_time = str(self.chunk_start_times[chunk_index])
        chunk_url = self.url_template
        for placeholder in URL_PLACEHOLDER_BITRATE:
            chunk_url = chunk_url.replace(placeholder, bitrate)
        for placeholder in URL_PLACEHOLDER_START_TIME:
            chunk_url = chunk_url.replace(placeholder, start_time)
        return urljoin(self.base_url, chunk_url)


def default_completeness_check(manifest: Manifest) -> list[str]:
    """
    Reports why a manifest cannot yet yield a complete, final segment plan.

    A manifest is considered incomplete while it is live, or while any stream
    element has no chunks or lists fewer chunks than it declares.
    """
    reasons = []
    if manifest.is_live:
        reasons.append("live manifest has not published its final chunk list")
    for index, element in enumerate(manifest.stream_elements):
        if element.chunk_count == 0:
            reasons.append(f"stream element {index} has no chunks yet")
        elif (
            element.declared_chunk_count is not None
            and element.chunk_count < element.declared_chunk_count
        ):
            reasons.append(
                f"stream element {index} lists {element.chunk_count} of "
                f"{element.declared_chunk_count} chunks"
            )
    return reasons


@dataclass(frozen=True, slots=True)
class Manifest:
    """A parsed SmoothStreaming manifest."""

    stream_elements: tuple[StreamElement, ...]
    major_version: int = 2
    minor_version: int = 0
    is_live: bool = False
    duration_us: int | None = None
    dvr_window_length_us: int | None = None
    lookahead_count: int = -1
    protection: ProtectionElement | None = None
    completeness_check: Callable[[Manifest], list[str]] = field(
        default=default_completeness_check, compare=False, repr=False
    )

    def incomplete_reasons(self) -> list[str]:
        return self.completeness_check(self)

    @property
    def is_complete(self) -> bool:
        return not self.incomplete_reasons()
