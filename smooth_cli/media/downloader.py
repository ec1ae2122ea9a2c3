"""
Handles the low-level downloading of fragments over HTTP with retry and
exponential backoff.
"""

import asyncio
import logging
import os

import aiofiles
import aiohttp
from rich.progress import TaskID

from smooth_cli.cli.progress_manager import ProgressManager
from smooth_cli.models.segment import SegmentRequest
from smooth_cli.models.stats import DownloadStats

log = logging.getLogger(__name__)

_connection_pool: aiohttp.ClientSession | None = None


async def get_connection_pool(max_workers: int = 8) -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    This function ensures that only one connection pool is created for the
    lifetime of the application run.

    Args:
        max_workers: Maximum concurrent connections (should match config.max_workers).
    """
    global _connection_pool
    # No await between the check and the assignment, so concurrent callers
    # on the same loop always share one session.
    if _connection_pool and not _connection_pool.closed:
        return _connection_pool

    connector = aiohttp.TCPConnector(
        limit=max_workers * 2,
        limit_per_host=max_workers,
        ttl_dns_cache=600,
        keepalive_timeout=30,
        enable_cleanup_closed=True,
    )
    timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=60)
    _connection_pool = aiohttp.ClientSession(connector=connector, timeout=timeout)
    log.debug(f"Created download pool with limit_per_host={max_workers}")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    session, _connection_pool = _connection_pool, None
    if session and not session.closed:
        await session.close()
        log.debug("Shared downloader connection pool closed.")


class Downloader:
    """A low-level fragment downloader with retry logic."""

    CHUNK_SIZE = 65536  # 64 KB

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.5):
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def download_file(
        self,
        request: SegmentRequest,
        destination_path: str,
        stats: DownloadStats | None = None,
        progress_manager: ProgressManager | None = None,
        task_id: TaskID | None = None,
        max_workers: int = 8,
    ) -> int:
        """
        Downloads a fragment to `destination_path` and returns the number of
        bytes written. The last network error is re-raised once all attempts
        are exhausted.
        """
        last_exception = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await get_connection_pool(max_workers)
                async with session.get(
                    request.url, headers=request.header_dict(), allow_redirects=True
                ) as response:
                    response.raise_for_status()

                    bytes_downloaded = 0
                    async with aiofiles.open(destination_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(
                            self.CHUNK_SIZE
                        ):
                            await f.write(chunk)
                            bytes_downloaded += len(chunk)

                            if stats:
                                await stats.record_bytes(len(chunk), progress_manager)
                            if progress_manager and task_id is not None:
                                progress_manager.advance_bytes(task_id, len(chunk))
                return bytes_downloaded
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{os.path.basename(destination_path)}' failed: {e}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise last_exception
