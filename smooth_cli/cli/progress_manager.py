"""
Manages a Rich Live display for concurrent segment downloads.
Shows overall progress, one bar per selected track, and real-time statistics.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table
from rich.text import Text

from smooth_cli.utils.formatting import format_duration, format_size

log = logging.getLogger("smooth_cli")


class ProgressManager:
    """
    Tracks per-track segment progress and session statistics, rendering them
    in a Live display unless running in dry-run mode.
    """

    def __init__(self, console: Console, dry_run: bool = False):
        self.console = console
        self.dry_run = dry_run

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=24),
            MofNCompleteColumn(),
            "•",
            TextColumn("[cyan]{task.fields[size]}"),
            "•",
            TimeRemainingColumn(),
            console=console,
        )

        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=console,
        )

        self._live: Live | None = None
        self._overall_task_id: TaskID | None = None
        self._track_bytes: dict[TaskID, int] = {}

        self._stats: dict[str, Any] = {
            "total_segments": 0,
            "completed": 0,
            "failed": 0,
            "skipped": 0,
            "downloaded_size": 0,
            "start_time": None,
            "current_speed": 0.0,
            "peak_speed": 0.0,
        }

    def log_message(self, message: str, level: str = "info"):
        """Unified logging respecting dry_run mode."""
        if self.dry_run:
            style_map = {
                "info": "cyan",
                "warning": "yellow",
                "error": "red",
                "success": "green",
            }
            style = style_map.get(level, "")
            self.console.print(f"[{style}]{message}[/{style}]" if style else message)
        else:
            getattr(log, level, log.info)(message)

    def initialize_session(self, total_segments: int):
        self._stats["total_segments"] = total_segments
        self._stats["start_time"] = datetime.now()
        if not self.dry_run:
            self._overall_task_id = self.overall_progress.add_task(
                "Overall Progress", total=total_segments
            )

    def add_track_task(self, description: str, total_segments: int) -> TaskID | None:
        if self.dry_run:
            return None
        if len(description) > 40:
            description = description[:37] + "..."
        task_id = self.progress.add_task(
            description, total=total_segments, size=format_size(0)
        )
        self._track_bytes[task_id] = 0
        self._refresh()
        return task_id

    def advance_bytes(self, task_id: TaskID | None, byte_count: int):
        self._stats["downloaded_size"] += byte_count
        if task_id is None or self.dry_run:
            return
        self._track_bytes[task_id] = self._track_bytes.get(task_id, 0) + byte_count
        self.progress.update(task_id, size=format_size(self._track_bytes[task_id]))

    def record_segment(self, task_id: TaskID | None, outcome: str = "completed"):
        """Counts a finished segment; `outcome` is completed, skipped or failed."""
        self._stats[outcome] += 1
        if self.dry_run:
            return
        if task_id is not None:
            self.progress.advance(task_id)
        if self._overall_task_id is not None:
            self.overall_progress.update(
                self._overall_task_id,
                completed=(
                    self._stats["completed"]
                    + self._stats["failed"]
                    + self._stats["skipped"]
                ),
            )
        self._refresh()

    def update_speed_stats(self, current_speed: float, peak_speed: float):
        self._stats["current_speed"] = current_speed
        self._stats["peak_speed"] = peak_speed

    def get_statistics(self) -> dict:
        return self._stats.copy()

    def _generate_stats_panel(self) -> Panel:
        elapsed = 0.0
        if self._stats["start_time"]:
            elapsed = (datetime.now() - self._stats["start_time"]).total_seconds()

        stats_table = Table.grid(padding=(0, 2))
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_row(
            "Downloaded:",
            f"[green]{self._stats['completed']}[/green]",
            "Failed:",
            f"[red]{self._stats['failed']}[/red]",
        )
        stats_table.add_row(
            "Skipped:",
            f"[yellow]{self._stats['skipped']}[/yellow]",
            "Elapsed:",
            f"[yellow]{format_duration(elapsed)}[/yellow]",
        )
        stats_table.add_row(
            "Size:",
            f"[cyan]{format_size(self._stats['downloaded_size'])}[/cyan]",
            "Speed:",
            f"[magenta]{format_size(int(self._stats['current_speed']))}/s[/magenta]",
        )

        combined = Table.grid()
        combined.add_row(stats_table)
        combined.add_row("")
        if self._overall_task_id is not None:
            combined.add_row(self.overall_progress)
        return Panel(
            combined, title="[bold]📊 Session Statistics[/bold]", border_style="blue"
        )

    def _render(self) -> Group:
        if not self.progress.tasks:
            tracks = Text(
                "Waiting for downloads to start...", style="dim italic", justify="center"
            )
        else:
            tracks = self.progress
        return Group(
            self._generate_stats_panel(),
            Panel(tracks, title="[bold]📥 Tracks[/bold]", border_style="green"),
        )

    def _refresh(self):
        if self._live and not self.dry_run:
            self._live.update(self._render())

    async def __aenter__(self):
        if self.dry_run:
            return self
        self._live = Live(
            self._render(),
            console=self.console,
            refresh_per_second=8,
            vertical_overflow="visible",
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live and not self.dry_run:
            await asyncio.sleep(0.2)
            self._refresh()
            self._live.stop()
