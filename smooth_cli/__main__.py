"""
Console entry point for smooth-cli.

Commands render the application errors they expect themselves. Whatever
escapes the Typer app ends up here: network failures while fetching a
manifest, cancellation, and unexpected bugs.
"""

import asyncio
import logging
import os
import sys

import aiohttp
import typer
from rich.console import Console

from smooth_cli.cli.app import app
from smooth_cli.cli.formatters import format_error_with_suggestions
from smooth_cli.exceptions import SegmentDownloadError, SmoothCliError

log = logging.getLogger("smooth_cli")

# Conventional status for a process stopped by SIGINT
EXIT_CANCELLED = 130


def error_context(error: BaseException) -> dict | None:
    """Details shown under the error panel for failures that carry them."""
    if isinstance(error, aiohttp.ClientResponseError):
        return {"status": error.status, "url": str(error.request_info.real_url)}
    if isinstance(error, (aiohttp.ClientError, asyncio.TimeoutError)):
        return {"stage": "manifest fetch"}
    if isinstance(error, SegmentDownloadError):
        return {
            "saved": error.total_count - error.failed_count,
            "failed": error.failed_count,
        }
    return None


def main(argv: list[str] | None = None) -> None:
    """Runs the CLI and maps escaped errors to panels and exit codes."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    console = Console()

    try:
        app(args=argv, prog_name="smooth-cli")
    except (typer.Exit, typer.Abort):
        raise
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print(
            "\n[yellow]⚠️  Cancelled. Fragments already saved are kept and "
            "skipped on the next run.[/yellow]"
        )
        sys.exit(EXIT_CANCELLED)
    except (SmoothCliError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        console.print(f"\n{format_error_with_suggestions(e, error_context(e))}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error_with_suggestions(e, {'type': 'Unexpected'})}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
