from __future__ import annotations

import pytest

from smooth_cli.models.segment import Segment, SegmentRequest, StreamKey


def test_segment_requires_stream_key_and_chunk_index() -> None:
    request = SegmentRequest("http://media.example.com/QualityLevels(1)/Fragments(v=0)")

    with pytest.raises(TypeError):
        Segment(start_time_us=0, request=request)

    segment = Segment(0, request, StreamKey(1, 2), 3)
    assert segment.url == request.url
    assert (segment.stream_key, segment.chunk_index) == (StreamKey(1, 2), 3)


def test_request_headers_include_range() -> None:
    request = SegmentRequest(
        "http://x/f", headers=(("Cookie", "a=b"),), byte_range=(0, 9)
    )

    assert request.header_dict() == {"Cookie": "a=b", "Range": "bytes=0-9"}
    assert SegmentRequest("http://x/f").header_dict() == {}
