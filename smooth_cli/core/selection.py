"""
Stream key selection: which (stream element, track) pairs to download.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from smooth_cli.exceptions import InvalidStreamKeyError
from smooth_cli.models.segment import StreamKey

if TYPE_CHECKING:
    from smooth_cli.models.manifest import Manifest


def parse_stream_key(value: str) -> StreamKey:
    """Parses a `"<stream>:<track>"` selector such as `"1:0"`."""
    parts = value.strip().split(":")
    if len(parts) != 2:
        raise InvalidStreamKeyError(
            f"Invalid stream key '{value}'. Expected '<stream>:<track>', e.g. '0:1'."
        )
    try:
        stream_index, track_index = int(parts[0]), int(parts[1])
    except ValueError as e:
        raise InvalidStreamKeyError(
            f"Invalid stream key '{value}': indices must be integers."
        ) from e
    if stream_index < 0 or track_index < 0:
        raise InvalidStreamKeyError(
            f"Invalid stream key '{value}': indices cannot be negative."
        )
    return StreamKey(stream_index, track_index)


def parse_stream_keys(values: Iterable[str]) -> list[StreamKey]:
    """Parses selectors, accepting comma-separated lists, and drops duplicates."""
    keys = []
    for value in values:
        for part in value.split(","):
            if part.strip():
                keys.append(parse_stream_key(part))
    return list(dict.fromkeys(keys))


class StreamKeySelection:
    """
    A set of stream keys. An empty selection selects every track of every
    stream element.
    """

    def __init__(self, keys: Iterable[StreamKey | tuple[int, int]] = ()):
        self._keys = frozenset(StreamKey(*key) for key in keys)

    @property
    def keys(self) -> frozenset[StreamKey]:
        return self._keys

    @property
    def is_empty(self) -> bool:
        return not self._keys

    def matches(self, stream_index: int, track_index: int) -> bool:
        return self.is_empty or (stream_index, track_index) in self._keys

    def unmatched(self, manifest: Manifest) -> list[StreamKey]:
        """Returns the keys that reference elements or tracks not in the manifest."""
        elements = manifest.stream_elements
        return sorted(
            key
            for key in self._keys
            if not 0 <= key.stream_index < len(elements)
            or not 0 <= key.track_index < elements[key.stream_index].track_count
        )

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        keys = ", ".join(str(key) for key in sorted(self._keys))
        return f"StreamKeySelection({{{keys}}})"
