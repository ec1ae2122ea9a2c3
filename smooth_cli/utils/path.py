"""
Utilities for handling output paths and templates.
"""

from pathlib import Path
from typing import Any, Dict

from pathvalidate import sanitize_filename, sanitize_filepath

from smooth_cli.models.config import STREAM_TYPE_EXT
from smooth_cli.models.manifest import Manifest
from smooth_cli.models.segment import Segment

DEFAULT_OUTPUT_TEMPLATE = "{stream_name}/{bitrate}/{chunk_index:05d}_{start_time}.{ext}"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


class PathFormatter:
    """
    Formats an output path template string using segment and manifest metadata.
    """

    def __init__(self, template: str) -> None:
        self.template = template

    def format_path(self, segment: Segment, manifest: Manifest) -> Path:
        """
        Generates a final, sanitized file path from the template.
        """
        template_vars = self._get_template_vars(segment, manifest)
        final_str = self.template.format(**template_vars)
        return Path(sanitize_filepath(final_str, platform="auto"))

    def _get_template_vars(self, segment: Segment, manifest: Manifest) -> Dict[str, Any]:
        """Builds the variable dictionary for template formatting."""
        stream_index, track_index = segment.stream_key
        element = manifest.stream_elements[stream_index]
        track = element.formats[track_index]

        return {
            "stream_index": stream_index,
            "stream_name": sanitize_filename(element.name or element.stream_type),
            "stream_type": element.stream_type,
            "track_index": track_index,
            "bitrate": track.bitrate,
            "chunk_index": segment.chunk_index,
            "start_time": element.chunk_start_times[segment.chunk_index],
            "start_time_us": segment.start_time_us,
            "ext": STREAM_TYPE_EXT.get(element.stream_type, "frag"),
        }
