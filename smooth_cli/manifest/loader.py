"""
Fetches manifests over HTTP (or from disk) and hands them to the parser.
"""

import asyncio
import logging
import re
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

import aiohttp

from smooth_cli.models.manifest import Manifest

from .parser import parse_manifest

log = logging.getLogger(__name__)

_MANIFEST_SEGMENT_REGEX = re.compile(r"manifest(\(.+\))?", re.IGNORECASE)


def fix_manifest_url(url: str) -> str:
    """
    Appends `/Manifest` to a publishing point URL unless the URL already
    points at the manifest (e.g. `.../Manifest` or `.../manifest(format=...)`).
    """
    parts = urlsplit(url)
    path = parts.path
    last_segment = path.rstrip("/").rsplit("/", 1)[-1]
    if last_segment and _MANIFEST_SEGMENT_REGEX.fullmatch(last_segment):
        return url
    path = path.rstrip("/") + "/Manifest"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def load_manifest_file(path: Path, base_url: str) -> Manifest:
    """Parses a manifest saved on disk, resolving fragments against `base_url`."""
    log.debug(f"Reading manifest from file: {path}")
    return parse_manifest(path.read_bytes(), fix_manifest_url(base_url))


class ManifestLoader:
    """
    Loads manifests over HTTP. Network and parsing errors propagate to the
    caller unchanged; retrying is left to whoever re-invokes `load`.
    """

    def __init__(self, timeout: float = 30.0, headers: dict[str, str] | None = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=15)
        self.headers = headers or {}

    async def fetch(self, url: str) -> tuple[str, bytes]:
        """Fetches the raw manifest and returns `(final_url, body)`."""
        manifest_url = fix_manifest_url(url)
        log.debug(f"Fetching manifest: {manifest_url}")
        async with aiohttp.ClientSession(
            timeout=self.timeout, headers=self.headers
        ) as session:
            async with session.get(manifest_url, allow_redirects=True) as response:
                response.raise_for_status()
                body = await response.read()
                return str(response.url), body

    async def load(self, url: str) -> Manifest:
        final_url, body = await self.fetch(url)
        return await asyncio.to_thread(parse_manifest, body, final_url)
