"""
Parses SmoothStreaming client manifests (`SmoothStreamingMedia` XML) into the
immutable `Manifest` model.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Callable
from typing import TypeVar

from lxml import etree

from smooth_cli.exceptions import ManifestParsingError
from smooth_cli.models.manifest import (
    DEFAULT_TIMESCALE,
    STREAM_TYPE_AUDIO,
    STREAM_TYPE_TEXT,
    STREAM_TYPE_VIDEO,
    Manifest,
    ProtectionElement,
    StreamElement,
    TrackFormat,
    scale_to_us,
)

log = logging.getLogger(__name__)

T = TypeVar("T")

_STREAM_TYPES = {STREAM_TYPE_VIDEO, STREAM_TYPE_AUDIO, STREAM_TYPE_TEXT}

_XML_PARSER = etree.XMLParser(
    resolve_entities=False, no_network=True, remove_blank_text=True
)


def _local_name(node: etree._Element) -> str:
    return etree.QName(node).localname


def _attr(
    node: etree._Element,
    name: str,
    parse: Callable[[str], T],
    default: T | None = None,
    required: bool = False,
) -> T | None:
    value = node.get(name)
    if value is None:
        if required:
            raise ManifestParsingError(
                f"Missing required attribute '{name}' on <{_local_name(node)}>"
            )
        return default
    try:
        return parse(value)
    except ValueError as e:
        raise ManifestParsingError(
            f"Invalid value '{value}' for attribute '{name}' on <{_local_name(node)}>"
        ) from e


def _bool_str(value: str) -> bool:
    return value.strip().lower() == "true"


def parse_manifest(data: bytes | str, manifest_url: str) -> Manifest:
    """
    Parses manifest XML.

    Args:
        data: The raw manifest document.
        manifest_url: URL the manifest was loaded from. Fragment URLs are
            resolved against it.

    Returns:
        The parsed Manifest.

    Raises:
        ManifestParsingError: If the document is not a valid manifest.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    try:
        root = etree.fromstring(data, parser=_XML_PARSER)
    except etree.XMLSyntaxError as e:
        snippet = repr(data[:35]) + (" ..." if len(data) > 35 else "")
        raise ManifestParsingError(
            f"Unable to parse manifest XML: {e} ({snippet})"
        ) from e

    if _local_name(root) != "SmoothStreamingMedia":
        raise ManifestParsingError(
            f"Unexpected root element <{_local_name(root)}>, "
            "expected <SmoothStreamingMedia>"
        )

    timescale = _attr(root, "TimeScale", int, DEFAULT_TIMESCALE)
    duration = _attr(root, "Duration", int)
    dvr_window_length = _attr(root, "DVRWindowLength", int)

    protection = None
    stream_elements = []
    for child in root:
        if not isinstance(child.tag, str):
            continue
        name = _local_name(child)
        if name == "Protection":
            protection = _parse_protection(child)
        elif name == "StreamIndex":
            stream_elements.append(_parse_stream_index(child, manifest_url, timescale))

    manifest = Manifest(
        stream_elements=tuple(stream_elements),
        major_version=_attr(root, "MajorVersion", int, required=True),
        minor_version=_attr(root, "MinorVersion", int, required=True),
        is_live=_attr(root, "IsLive", _bool_str, False),
        duration_us=scale_to_us(duration, timescale) if duration else None,
        dvr_window_length_us=(
            scale_to_us(dvr_window_length, timescale) if dvr_window_length else None
        ),
        lookahead_count=_attr(root, "LookaheadCount", int, -1),
        protection=protection,
    )
    log.debug(
        f"Parsed manifest with {len(manifest.stream_elements)} stream elements "
        f"(live={manifest.is_live})."
    )
    return manifest


def _parse_protection(node: etree._Element) -> ProtectionElement:
    header = next(
        (
            child
            for child in node
            if isinstance(child.tag, str) and _local_name(child) == "ProtectionHeader"
        ),
        None,
    )
    if header is None:
        raise ManifestParsingError("<Protection> is missing a <ProtectionHeader>")

    system_id = _attr(header, "SystemID", str, required=True).strip("{}").lower()
    text = "".join((header.text or "").split())
    try:
        data = base64.b64decode(text) if text else b""
    except binascii.Error as e:
        raise ManifestParsingError("Invalid base64 in <ProtectionHeader>") from e
    return ProtectionElement(system_id=system_id, data=data)


def _parse_stream_type(value: str) -> str:
    stream_type = value.strip().lower()
    if stream_type not in _STREAM_TYPES:
        raise ValueError(value)
    return stream_type


def _parse_stream_index(
    node: etree._Element, manifest_url: str, parent_timescale: int
) -> StreamElement:
    stream_type = _attr(node, "Type", _parse_stream_type, required=True)
    url_template = _attr(node, "Url", str, required=True)

    formats = []
    start_times: list[int] = []
    last_chunk_duration = None

    for child in node:
        if not isinstance(child.tag, str):
            continue
        name = _local_name(child)
        if name == "QualityLevel":
            formats.append(_parse_quality_level(child, len(formats)))
        elif name == "c":
            last_chunk_duration = _parse_chunk(child, start_times, last_chunk_duration)

    return StreamElement(
        stream_type=stream_type,
        name=_attr(node, "Name", str, stream_type),
        url_template=url_template,
        base_url=manifest_url,
        timescale=_attr(node, "TimeScale", int, parent_timescale),
        formats=tuple(formats),
        chunk_start_times=tuple(start_times),
        last_chunk_duration=last_chunk_duration,
        declared_chunk_count=_attr(node, "Chunks", int),
        subtype=_attr(node, "Subtype", str),
        language=_attr(node, "Language", str),
        max_width=_attr(node, "MaxWidth", int),
        max_height=_attr(node, "MaxHeight", int),
        display_width=_attr(node, "DisplayWidth", int),
        display_height=_attr(node, "DisplayHeight", int),
    )


def _parse_chunk(
    node: etree._Element, start_times: list[int], previous_duration: int | None
) -> int | None:
    """
    Appends the start time(s) described by a `<c>` element and returns its
    duration, which becomes the "last chunk duration" of the element.
    """
    start_time = _attr(node, "t", int)
    if start_time is None:
        if not start_times:
            start_time = 0
        elif previous_duration is not None:
            start_time = start_times[-1] + previous_duration
        else:
            raise ManifestParsingError(
                f"Unable to infer start time of chunk {len(start_times)}"
            )

    duration = _attr(node, "d", int)
    repeat_count = _attr(node, "r", int, 1)
    if repeat_count > 1 and duration is None:
        raise ManifestParsingError("Repeated chunk with no duration")

    start_times.append(start_time)
    for i in range(1, repeat_count):
        start_times.append(start_time + duration * i)
    return duration


def _parse_quality_level(node: etree._Element, position: int) -> TrackFormat:
    return TrackFormat(
        index=_attr(node, "Index", int, position),
        bitrate=_attr(node, "Bitrate", int, required=True),
        fourcc=_attr(node, "FourCC", str, ""),
        codec_private_data=_attr(node, "CodecPrivateData", str, ""),
        max_width=_attr(node, "MaxWidth", int),
        max_height=_attr(node, "MaxHeight", int),
        sampling_rate=_attr(node, "SamplingRate", int),
        channels=_attr(node, "Channels", int),
        language=_attr(node, "Language", str),
    )
