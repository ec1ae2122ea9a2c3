"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from smooth_cli.exceptions import IncompleteManifestError
from smooth_cli.models.config import DownloadConfig
from smooth_cli.models.manifest import Manifest
from smooth_cli.models.segment import Segment
from smooth_cli.models.stats import DownloadStats
from smooth_cli.utils.formatting import (
    format_bitrate,
    format_duration,
    format_size,
    format_timestamp_us,
)


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)
    if isinstance(error, IncompleteManifestError):
        error_msg = "Manifest is incomplete:\n" + "\n".join(
            f"  - {reason}" for reason in error.reasons
        )

    suggestions_map = {
        "IncompleteManifestError": [
            "• The manifest is live or still growing.",
            "• Re-run with --allow-incomplete to plan what is available now.",
            "• Check your -k/--key selectors against `smooth-cli info <URL>`.",
        ],
        "ManifestParsingError": [
            "• The URL may not point at a SmoothStreaming manifest.",
            "• Publishing points usually end in '.ism' or '.isml'.",
        ],
        "InvalidStreamKeyError": [
            "• Stream keys look like '<stream>:<track>', e.g. '0:2'.",
            "• List available keys with `smooth-cli info <URL>`.",
        ],
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `smooth-cli init --force` to recreate it with defaults.",
        ],
        "SegmentDownloadError": [
            "• Re-run the same command: finished segments are skipped.",
            "• Try reducing the number of `--workers`.",
        ],
        "ClientResponseError": [
            "• The server rejected the request.",
            "• The manifest URL may have expired or require authentication.",
        ],
        "ClientConnectionError": [
            "• The connection to the server was lost.",
            "• Re-run the command; saved fragments are skipped.",
        ],
        "ClientConnectorError": [
            "• A network connection issue occurred.",
            "• Check the host name and your internet connection.",
        ],
        "TimeoutError": [
            "• The request timed out, which may indicate network throttling.",
            "• Try reducing the number of `--workers`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in config_data.items())
    console.print(
        Panel(
            content,
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: DownloadConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Output Directory:", f"[dim]{config.output_dir}[/dim]")
    table.add_row("Output Template:", f"[dim]{config.output_template}[/dim]")
    table.add_row("Max Workers:", str(config.max_workers))
    table.add_row(
        "Retries:", f"{config.max_attempts} attempts, {config.base_delay}s base delay"
    )
    table.add_row(
        "Allow Incomplete:", "✓ Enabled" if config.allow_incomplete else "✗ Disabled"
    )

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_manifest_table(manifest: Manifest, console: Console | None = None):
    """Lists stream elements and their tracks with the keys used to select them."""
    console = console or Console()

    summary = Text()
    summary.append("Live" if manifest.is_live else "On demand", style="bold magenta")
    if manifest.duration_us:
        summary.append(
            f" • {format_duration(manifest.duration_us / 1_000_000)}", style="cyan"
        )
    summary.append(
        f" • v{manifest.major_version}.{manifest.minor_version}", style="dim"
    )
    if manifest.protection:
        summary.append(f" • protected ({manifest.protection.system_id})", style="red")
    console.print(summary)

    table = Table(box=box.ROUNDED, title="[bold]Stream Elements[/bold]")
    table.add_column("Key", style="bold magenta", no_wrap=True)
    table.add_column("Stream", style="cyan")
    table.add_column("Type")
    table.add_column("Bitrate", justify="right", style="green")
    table.add_column("Codec")
    table.add_column("Details", style="dim")
    table.add_column("Chunks", justify="right")

    for stream_index, element in enumerate(manifest.stream_elements):
        table.add_section()
        for track_index, track in enumerate(element.formats):
            if track.max_width and track.max_height:
                details = f"{track.max_width}x{track.max_height}"
            elif track.sampling_rate:
                details = f"{track.sampling_rate} Hz, {track.channels or '?'} ch"
            else:
                details = ""
            table.add_row(
                f"{stream_index}:{track_index}",
                element.name,
                element.stream_type,
                format_bitrate(track.bitrate),
                track.fourcc,
                details,
                str(element.chunk_count),
            )

    console.print(table)


def print_plan_table(
    segments: list[Segment], limit: int | None = None, console: Console | None = None
):
    """Displays the planned segments in order."""
    console = console or Console()
    shown = segments if limit is None else segments[:limit]

    table = Table(box=box.SIMPLE, title=f"[bold]Segment Plan ({len(segments)})[/bold]")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Key", style="bold magenta")
    table.add_column("Chunk", justify="right")
    table.add_column("Start", style="cyan", justify="right")
    table.add_column("URL", overflow="fold")

    for position, segment in enumerate(shown):
        table.add_row(
            str(position),
            str(segment.stream_key),
            str(segment.chunk_index),
            format_timestamp_us(segment.start_time_us),
            segment.url,
        )

    console.print(table)
    if len(shown) < len(segments):
        console.print(f"[dim]… {len(segments) - len(shown)} more segments[/dim]")


def print_summary_panel(stats: DownloadStats, duration_s: float):
    """Displays a final summary of the download session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("Planned:", f"{stats.segments_planned} segments")
    stats_table.add_row(
        "✓ Downloaded:", f"[bold green]{stats.segments_downloaded}[/bold green]"
    )
    if stats.segments_skipped_exists > 0:
        stats_table.add_row(
            "○ Skipped:", f"[yellow]{stats.segments_skipped_exists} (exists)[/yellow]"
        )
    if stats.segments_failed > 0:
        stats_table.add_row(
            "✗ Failed:", f"[bold red]{stats.segments_failed}[/bold red]"
        )

    stats_table.add_row("", "")
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_size_downloaded)}[/cyan]"
    )
    avg_speed = stats.total_size_downloaded / duration_s if duration_s > 0 else 0
    stats_table.add_row(
        "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
    )
    if stats.peak_speed_bps > 0:
        stats_table.add_row(
            "Peak Speed:",
            f"[magenta]{format_size(int(stats.peak_speed_bps))}/s[/magenta]",
        )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if stats.segments_downloaded > 0 and duration_s > 0:
        per_minute = (stats.segments_downloaded / duration_s) * 60
        stats_table.add_row("Throughput:", f"[cyan]{per_minute:.1f} segments/min[/cyan]")

    if stats.dry_run:
        title = "🔍 [bold]Dry Run Summary[/bold]"
        border_color = "yellow"
    elif stats.segments_failed:
        title = "⚠ [bold]Download Finished With Errors[/bold]"
        border_color = "red"
    else:
        title = "🎬 [bold]Download Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
