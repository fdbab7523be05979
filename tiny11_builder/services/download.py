"""HTTP download of the unattended-install answer file.

The download is best-effort: every network failure is reported as False so
the build can continue without the file.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiohttp

from tiny11_builder.logging import get_logger

log = get_logger(source=__name__)


class DownloadError(Exception):
    """Raised when the server answers with a non-success status."""

    pass


class Downloader:
    """Fetches a single URL to a local file with bounded timeouts."""

    def __init__(self, connect_timeout: float = 10, total_timeout: float = 30):
        """Initialize downloader.

        Args:
            connect_timeout: Seconds allowed to establish the connection
            total_timeout: Seconds allowed for the whole request
        """
        self.timeout = aiohttp.ClientTimeout(
            total=total_timeout, sock_connect=connect_timeout, connect=connect_timeout
        )

    async def fetch(self, url: str) -> bytes:
        """Return the response body for ``url``.

        Raises:
            DownloadError: HTTP error status
            aiohttp.ClientError: Connection or protocol failure
            asyncio.TimeoutError: Timeout exceeded
        """
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(url) as resp:
                if resp.status >= 400:
                    raise DownloadError(f"HTTP {resp.status} for {url}")
                return await resp.read()

    def download(self, url: str, destination: Path) -> bool:
        """Download ``url`` to ``destination``.

        Returns:
            True when the file was written, False on any network failure
        """
        try:
            body = asyncio.run(self.fetch(url))
        except (aiohttp.ClientError, asyncio.TimeoutError, DownloadError) as e:
            log.debug(f"Download of {url} failed: {type(e).__name__}: {e}")
            return False
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(body)
        log.debug(f"Downloaded {len(body)} bytes to {destination}")
        return True
