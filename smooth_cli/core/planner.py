from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from smooth_cli.core.selection import StreamKeySelection
from smooth_cli.exceptions import IncompleteManifestError
from smooth_cli.models.segment import Segment, SegmentRequest, StreamKey

if TYPE_CHECKING:
    from smooth_cli.models.manifest import Manifest

log = logging.getLogger(__name__)


def plan_segments(
    manifest: Manifest,
    stream_keys: Iterable[StreamKey | tuple[int, int]] | StreamKeySelection = (),
    allow_incomplete_list: bool = False,
) -> list[Segment]:
    """
    Expand a manifest into the ordered list of segments to download.

    This function performs *planning only*. It does no I/O and never mutates
    the manifest, so it can be called again after a live manifest has been
    refreshed.

    Parameters
    ----------
    manifest:
        Parsed manifest to traverse.

    stream_keys:
        Selection of (stream element, track) pairs. Empty selects everything.

    allow_incomplete_list:
        When False, the call fails with IncompleteManifestError if a key is
        outside the manifest or the manifest reports itself incomplete.
        When True, such conditions are ignored and whatever is present is
        planned.

    Returns
    -------
    list[Segment]
        Segments ordered by stream element, then track, then chunk.
    """

    if isinstance(stream_keys, StreamKeySelection):
        selection = stream_keys
    else:
        selection = StreamKeySelection(stream_keys)

    # ------------------------------------------------------------------
    # 1. Strict mode: refuse to produce a partial plan
    # ------------------------------------------------------------------

    if not allow_incomplete_list:
        reasons = [
            f"stream key {key} is not present in the manifest"
            for key in selection.unmatched(manifest)
        ]
        reasons.extend(manifest.incomplete_reasons())
        if reasons:
            raise IncompleteManifestError(reasons)

    # ------------------------------------------------------------------
    # 2. Traverse elements -> tracks -> chunks
    # ------------------------------------------------------------------

    segments: list[Segment] = []

    for stream_index, element in enumerate(manifest.stream_elements):
        for track_index in range(element.track_count):
            if not selection.matches(stream_index, track_index):
                continue

            key = StreamKey(stream_index, track_index)
            for chunk_index in range(element.chunk_count):
                segments.append(
                    Segment(
                        start_time_us=element.get_start_time_us(chunk_index),
                        request=SegmentRequest(
                            url=element.build_request_url(track_index, chunk_index)
                        ),
                        stream_key=key,
                        chunk_index=chunk_index,
                    )
                )

    log.debug(
        f"Planned {len(segments)} segments from "
        f"{len(manifest.stream_elements)} stream elements ({selection!r})."
    )
    return segments
