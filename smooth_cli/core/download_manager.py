"""
The main orchestrator: loads the manifest, plans segments and manages the
download queue.
"""

import asyncio
import json
import logging
import time
from collections import Counter
from collections.abc import Callable, Iterable
from pathlib import Path

from rich.markup import escape
from rich.progress import TaskID

from smooth_cli.cli.progress_manager import ProgressManager
from smooth_cli.exceptions import SegmentDownloadError
from smooth_cli.manifest import ManifestLoader
from smooth_cli.media import Downloader
from smooth_cli.models.config import DownloadConfig
from smooth_cli.models.manifest import Manifest
from smooth_cli.models.segment import Segment, StreamKey
from smooth_cli.models.stats import DownloadStats
from smooth_cli.utils.formatting import format_bitrate

from .planner import plan_segments
from .segment_processor import SegmentProcessor

log = logging.getLogger(__name__)

PlanStrategy = Callable[[Manifest, Iterable[StreamKey], bool], list[Segment]]


def describe_track(manifest: Manifest, key: StreamKey) -> str:
    """Short label for a selected track, e.g. 'video 1:2 (2.5 Mbps)'."""
    element = manifest.stream_elements[key.stream_index]
    bitrate = element.formats[key.track_index].bitrate
    return f"{element.name} {key} ({format_bitrate(bitrate)})"


class DownloadManager:
    """
    Orchestrates the entire download process.

    Only the plan strategy is specific to the manifest format; fetching,
    retrying and progress reporting are handled here and in the processor.
    """

    def __init__(
        self,
        config: DownloadConfig,
        progress_manager: ProgressManager,
        loader: ManifestLoader | None = None,
        planner: PlanStrategy = plan_segments,
        downloader: Downloader | None = None,
    ):
        self.config = config
        self.progress_manager = progress_manager
        self.loader = loader or ManifestLoader()
        self.planner = planner
        self.stats = DownloadStats(dry_run=config.dry_run)
        self.start_time = time.monotonic()
        self.segment_processor = SegmentProcessor(
            config,
            self.stats,
            downloader
            or Downloader(
                max_attempts=config.max_attempts, base_delay=config.base_delay
            ),
            progress_manager,
        )
        self.semaphore = asyncio.Semaphore(config.max_workers)

    def save_session_stats(self):
        """Appends the current session's stats to a history file."""
        stats_file = Path(self.config.config_path) / "session_history.jsonl"
        try:
            stats_file.parent.mkdir(parents=True, exist_ok=True)
            with open(stats_file, "a", encoding="utf-8") as f:
                session_data = {
                    "timestamp": int(time.time()),
                    "manifest_url": self.config.manifest_url,
                    "segments_planned": self.stats.segments_planned,
                    "segments_downloaded": self.stats.segments_downloaded,
                    "segments_skipped_exists": self.stats.segments_skipped_exists,
                    "segments_failed": self.stats.segments_failed,
                    "total_size_downloaded": self.stats.total_size_downloaded,
                    "duration_seconds": round(time.monotonic() - self.start_time, 2),
                }
                json.dump(session_data, f)
                f.write("\n")
        except OSError as e:
            log.warning(f"[yellow]Could not save session stats:[/] {e}")

    async def load_manifest(self) -> Manifest:
        log.info(f"Loading manifest: [dim]{escape(self.config.manifest_url)}[/dim]")
        return await self.loader.load(self.config.manifest_url)

    def plan(self, manifest: Manifest) -> list[Segment]:
        """Runs the plan strategy. IncompleteManifestError propagates."""
        return self.planner(
            manifest, self.config.stream_keys, self.config.allow_incomplete
        )

    async def execute_downloads(self, manifest: Manifest | None = None) -> DownloadStats:
        """Plans and downloads all selected segments of the manifest."""
        if manifest is None:
            manifest = await self.load_manifest()

        segments = self.plan(manifest)
        self.stats.segments_planned = len(segments)

        if not segments:
            log.warning(
                "[yellow]The selection matched no segments. Nothing to do.[/yellow]"
            )
            return self.stats

        self.progress_manager.initialize_session(total_segments=len(segments))

        task_ids: dict[StreamKey, TaskID | None] = {}
        for key, count in Counter(s.stream_key for s in segments).items():
            task_ids[key] = self.progress_manager.add_track_task(
                describe_track(manifest, key), count
            )
            self.stats.tracks_processed.add(str(key))

        tasks = [
            self._process_segment(segment, manifest, task_ids[segment.stream_key])
            for segment in segments
        ]
        await asyncio.gather(*tasks)
        return self.stats

    def raise_for_failures(self) -> None:
        if self.stats.segments_failed:
            raise SegmentDownloadError(
                self.stats.segments_failed, self.stats.segments_planned
            )

    async def _process_segment(
        self, segment: Segment, manifest: Manifest, task_id: TaskID | None
    ) -> Path | None:
        async with self.semaphore:
            return await self.segment_processor.process_segment(
                segment, manifest, task_id
            )
