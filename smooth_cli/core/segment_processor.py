"""
Handles the processing of a single segment, from download to its final file.
"""

import logging
import os
from pathlib import Path

from rich.markup import escape
from rich.progress import TaskID

from smooth_cli.cli.progress_manager import ProgressManager
from smooth_cli.media import Downloader
from smooth_cli.models.config import DownloadConfig
from smooth_cli.models.manifest import Manifest
from smooth_cli.models.segment import Segment
from smooth_cli.models.stats import DownloadStats
from smooth_cli.utils.path import PathFormatter, create_dir

log = logging.getLogger(__name__)


class SegmentProcessor:
    """
    Downloads one segment into its templated output path.
    """

    def __init__(
        self,
        config: DownloadConfig,
        stats: DownloadStats,
        downloader: Downloader,
        progress_manager: ProgressManager,
    ):
        self.config = config
        self.stats = stats
        self.downloader = downloader
        self.progress_manager = progress_manager
        self.output_dir = Path(config.output_dir)
        self.path_formatter = PathFormatter(config.output_template)

    def resolve_path(self, segment: Segment, manifest: Manifest) -> Path:
        return self.output_dir / self.path_formatter.format_path(segment, manifest)

    async def process_segment(
        self,
        segment: Segment,
        manifest: Manifest,
        task_id: TaskID | None = None,
    ) -> Path | None:
        """
        Manages the complete lifecycle of downloading and saving a segment.
        Returns the final path, or None when the segment was skipped or failed.
        """
        final_path = self.resolve_path(segment, manifest)

        if self.config.dry_run:
            self.progress_manager.console.print(
                f"  [cyan]→ (Dry Run)[/] Would save [dim]{escape(segment.url)}[/dim] "
                f"to [dim]{escape(str(final_path))}[/dim]"
            )
            self.progress_manager.record_segment(task_id, "skipped")
            return None

        if final_path.is_file():
            self.stats.segments_skipped_exists += 1
            self.progress_manager.record_segment(task_id, "skipped")
            log.debug(f"Skipping {final_path.name} (already exists)")
            return None

        create_dir(final_path.parent)
        temp_path = final_path.with_suffix(final_path.suffix + ".tmp")

        try:
            size = await self.downloader.download_file(
                request=segment.request,
                destination_path=str(temp_path),
                stats=self.stats,
                progress_manager=self.progress_manager,
                task_id=task_id,
                max_workers=self.config.max_workers,
            )
            os.replace(temp_path, final_path)

            self.stats.segments_downloaded += 1
            self.progress_manager.record_segment(task_id, "completed")
            log.debug(f"Saved {final_path} ({size} bytes)")
            return final_path

        except Exception as e:
            self.stats.segments_failed += 1
            self.progress_manager.record_segment(task_id, "failed")
            log.error(
                f"  [red]✗ Failed:[/] {escape(segment.url)} ({escape(str(e))})",
                exc_info=log.getEffectiveLevel() == logging.DEBUG,
            )
            return None
        finally:
            if temp_path.exists():
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
