"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from smooth_cli import __version__
from smooth_cli.core.download_manager import DownloadManager
from smooth_cli.core.planner import plan_segments
from smooth_cli.core.selection import parse_stream_keys
from smooth_cli.exceptions import SmoothCliError
from smooth_cli.manifest import ManifestLoader, load_manifest_file
from smooth_cli.media import close_connection_pool
from smooth_cli.models.manifest import Manifest
from smooth_cli.storage.config_manager import ConfigManager

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_manifest_table,
    print_plan_table,
    print_summary_panel,
    print_validation_table,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("smooth_cli")

app = typer.Typer(
    name="smooth-cli",
    help=(
        "Plan and download SmoothStreaming presentations. Use 'smooth-cli"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "smooth-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"

_KEYS_HELP = (
    "Select a track as '<stream>:<track>' (repeatable, or comma-separated). "
    "Selects every track when omitted."
)
_ALLOW_INCOMPLETE_HELP = (
    "Plan whatever chunks are currently listed instead of failing on live or "
    "incomplete manifests."
)
_MANIFEST_FILE_HELP = (
    "Read the manifest from a local file; URL is then only used to resolve "
    "fragment addresses."
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """SmoothStreaming Downloader CLI"""
    if version:
        console.print(f"[bold]smooth-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("smooth_cli").setLevel(log_level)

    if show_config:
        config_manager = ConfigManager(CONFIG_FILE)
        print_config(CONFIG_FILE, config_manager.get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _load_manifest(url: str, manifest_file: Path | None) -> Manifest:
    if manifest_file:
        return load_manifest_file(manifest_file, url)
    return asyncio.run(ManifestLoader().load(url))


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Create a configuration file with default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(CONFIG_FILE).save_new_config()
    except SmoothCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command()
def info(
    url: str = typer.Argument(..., help="Manifest or publishing point URL."),
    manifest_file: Path | None = typer.Option(
        None,
        "--manifest-file",
        "-m",
        exists=True,
        dir_okay=False,
        help=_MANIFEST_FILE_HELP,
    ),
):
    """Show the stream elements and tracks of a manifest."""
    try:
        manifest = _load_manifest(url, manifest_file)
    except SmoothCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    print_manifest_table(manifest, console=console)


@app.command()
def plan(
    url: str = typer.Argument(..., help="Manifest or publishing point URL."),
    keys: list[str] | None = typer.Option(  # noqa: B008
        None, "-k", "--key", help=_KEYS_HELP
    ),
    allow_incomplete: bool = typer.Option(
        False, "--allow-incomplete", help=_ALLOW_INCOMPLETE_HELP
    ),
    limit: int | None = typer.Option(
        None, "--limit", "-n", min=0, help="Show only the first N segments."
    ),
    manifest_file: Path | None = typer.Option(
        None,
        "--manifest-file",
        "-m",
        exists=True,
        dir_okay=False,
        help=_MANIFEST_FILE_HELP,
    ),
):
    """Print the ordered segment plan without downloading anything."""
    try:
        stream_keys = parse_stream_keys(keys or [])
        manifest = _load_manifest(url, manifest_file)
        segments = plan_segments(manifest, stream_keys, allow_incomplete)
    except SmoothCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    print_plan_table(segments, limit=limit, console=console)


@app.command(name="download")
def download_command(
    url: str = typer.Argument(..., help="Manifest or publishing point URL."),
    keys: list[str] | None = typer.Option(  # noqa: B008
        None, "-k", "--key", help=_KEYS_HELP
    ),
    allow_incomplete: bool | None = typer.Option(
        None,
        "--allow-incomplete/--require-complete",
        help=_ALLOW_INCOMPLETE_HELP,
    ),
    output_dir: str | None = typer.Option(
        None, "-o", "--output", help="Directory to write fragments into."
    ),
    output_template: str | None = typer.Option(
        None, "--template", help="Path template for each fragment file."
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous downloads (default 8, override default in config).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Simulate the download process without writing any files.",
    ),
    manifest_file: Path | None = typer.Option(
        None,
        "--manifest-file",
        "-m",
        exists=True,
        dir_okay=False,
        help=_MANIFEST_FILE_HELP,
    ),
):
    """Download the selected tracks of a SmoothStreaming presentation."""
    try:
        stream_keys = parse_stream_keys(keys or [])
    except SmoothCliError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    cli_options = {
        key: value
        for key, value in {
            "manifest_url": url,
            "stream_keys": stream_keys,
            "allow_incomplete": allow_incomplete,
            "output_dir": output_dir,
            "output_template": output_template,
            "max_workers": workers,
            "dry_run": dry_run,
        }.items()
        if value is not None
    }

    async def _download_async():
        manager = None
        duration = 0.0

        async with ProgressManager(console=console, dry_run=dry_run) as progress_manager:
            try:
                config = ConfigManager(CONFIG_FILE).load_config(cli_options)
                manager = DownloadManager(config, progress_manager)

                manifest = None
                if manifest_file:
                    manifest = load_manifest_file(manifest_file, url)

                start_time = time.monotonic()
                await manager.execute_downloads(manifest)
                duration = time.monotonic() - start_time
            except SmoothCliError as e:
                console.print(format_error_with_suggestions(e))
                raise typer.Exit(code=1) from e
            finally:
                await close_connection_pool()

        print_summary_panel(manager.stats, duration)
        if not config.dry_run:
            manager.save_session_stats()
        try:
            manager.raise_for_failures()
        except SmoothCliError as e:
            console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=1) from e

    asyncio.run(_download_async())


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config(require_file=True)
        print_validation_table(config)
    except SmoothCliError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
