"""
Fragment transfer against a local aiohttp server.
"""

from __future__ import annotations

import asyncio
from collections import Counter

import aiohttp
import pytest
from aiohttp import test_utils, web

from smooth_cli.media.downloader import (
    Downloader,
    close_connection_pool,
    get_connection_pool,
)
from smooth_cli.models.segment import SegmentRequest
from smooth_cli.models.stats import DownloadStats

PAYLOAD = b"\x00\x00\x00\x18moof" * 4096


def _fragment_app(calls: Counter) -> web.Application:
    async def fragment(request: web.Request) -> web.Response:
        return web.Response(body=PAYLOAD)

    async def flaky(request: web.Request) -> web.Response:
        calls["flaky"] += 1
        if calls["flaky"] < 3:
            raise web.HTTPServiceUnavailable()
        return web.Response(body=b"finally")

    async def echo_range(request: web.Request) -> web.Response:
        return web.Response(text=request.headers.get("Range", ""))

    app = web.Application()
    app.router.add_get("/fragment", fragment)
    app.router.add_get("/flaky", flaky)
    app.router.add_get("/range", echo_range)
    return app


def _download(path: str, destination, downloader=None, **request_kwargs):
    """Runs one download against a fresh server; returns (bytes, stats, calls)."""
    calls: Counter = Counter()
    app = _fragment_app(calls)
    stats = DownloadStats()

    async def _run():
        try:
            async with test_utils.TestServer(app) as server:
                request = SegmentRequest(str(server.make_url(path)), **request_kwargs)
                size = await (downloader or Downloader()).download_file(
                    request, str(destination), stats=stats
                )
                return size
        finally:
            await close_connection_pool()

    return asyncio.run(_run()), stats, calls


def test_download_writes_fragment(tmp_path) -> None:
    destination = tmp_path / "frag.ismv"

    size, stats, _ = _download("/fragment", destination)

    assert size == len(PAYLOAD)
    assert destination.read_bytes() == PAYLOAD
    assert stats.total_size_downloaded == len(PAYLOAD)


def test_download_retries_server_errors(tmp_path) -> None:
    destination = tmp_path / "frag.ismv"

    size, _, calls = _download(
        "/flaky", destination, Downloader(max_attempts=3, base_delay=0)
    )

    assert calls["flaky"] == 3
    assert destination.read_bytes() == b"finally"
    assert size == len(b"finally")


def test_download_raises_after_last_attempt(tmp_path) -> None:
    with pytest.raises(aiohttp.ClientResponseError) as excinfo:
        _download("/missing", tmp_path / "x", Downloader(max_attempts=2, base_delay=0))

    assert excinfo.value.status == 404


def test_byte_range_is_sent_as_header(tmp_path) -> None:
    destination = tmp_path / "range.txt"

    _download("/range", destination, byte_range=(100, 199))

    assert destination.read_text() == "bytes=100-199"


def test_connection_pool_is_shared_until_closed() -> None:
    async def _run():
        first = await get_connection_pool()
        second = await get_connection_pool()
        await close_connection_pool()
        third = await get_connection_pool()
        await close_connection_pool()
        return first, second, third

    first, second, third = asyncio.run(_run())

    assert first is second
    assert first.closed
    assert third is not first
