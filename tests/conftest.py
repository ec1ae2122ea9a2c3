"""
Shared fixtures: a small two-element manifest, both as parsed model and as
the XML document a server would return.
"""

from __future__ import annotations

import pytest

from smooth_cli.models.manifest import Manifest, StreamElement, TrackFormat

MANIFEST_URL = "http://media.example.com/vod/movie.ism/Manifest"

SAMPLE_MANIFEST_XML = """<?xml version="1.0" encoding="utf-8"?>
<SmoothStreamingMedia MajorVersion="2" MinorVersion="0" Duration="60000000">
  <StreamIndex Type="video" Name="video" Chunks="3" QualityLevels="1"
      Url="QualityLevels({bitrate})/Fragments(video={start time})"
      MaxWidth="1280" MaxHeight="720">
    <QualityLevel Index="0" Bitrate="1000000" FourCC="H264"
        MaxWidth="1280" MaxHeight="720" CodecPrivateData="00000001674D401F"/>
    <c t="0" d="20000000"/>
    <c d="20000000"/>
    <c d="20000000"/>
  </StreamIndex>
  <StreamIndex Type="audio" Name="audio_eng" Language="eng" Chunks="2"
      QualityLevels="2" Url="QualityLevels({bitrate})/Fragments(audio={start_time})">
    <QualityLevel Index="0" Bitrate="64000" FourCC="AACL"
        SamplingRate="44100" Channels="2"/>
    <QualityLevel Index="1" Bitrate="128000" FourCC="AACL"
        SamplingRate="48000" Channels="2"/>
    <c t="0" d="20000000" r="2"/>
  </StreamIndex>
</SmoothStreamingMedia>
"""


def make_element(
    stream_type: str,
    bitrates: list[int],
    start_times: list[int],
    name: str | None = None,
    last_chunk_duration: int | None = 20_000_000,
    declared_chunk_count: int | None = None,
) -> StreamElement:
    return StreamElement(
        stream_type=stream_type,
        name=name or stream_type,
        url_template=(
            "QualityLevels({bitrate})/Fragments(" + stream_type + "={start time})"
        ),
        base_url=MANIFEST_URL,
        timescale=10_000_000,
        formats=tuple(
            TrackFormat(index=i, bitrate=bitrate) for i, bitrate in enumerate(bitrates)
        ),
        chunk_start_times=tuple(start_times),
        last_chunk_duration=last_chunk_duration,
        declared_chunk_count=declared_chunk_count,
    )


@pytest.fixture
def two_element_manifest() -> Manifest:
    """Element 0: one track, three chunks. Element 1: two tracks, two chunks."""
    return Manifest(
        stream_elements=(
            make_element("video", [1_000_000], [0, 20_000_000, 40_000_000]),
            make_element("audio", [64_000, 128_000], [0, 20_000_000]),
        ),
        duration_us=6_000_000,
    )


@pytest.fixture
def manifest_xml() -> str:
    return SAMPLE_MANIFEST_XML
