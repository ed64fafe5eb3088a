"""
Handles the low-level transfer of media streams over HTTP into staged files,
bounded by a maximum size and a maximum transfer time.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiohttp

from ytzip.exceptions import TransferError, TransferLimitError
from ytzip.models.media import EncodingOption

log = logging.getLogger(__name__)

CHUNK_SIZE = 1048576  # 1 MB


class Downloader:
    """
    A streaming downloader with retry logic and size/time limits.

    Each archive job owns its own Downloader, and therefore its own
    connection pool, which is closed when the job ends.
    """

    def __init__(
        self,
        max_bytes: int,
        timeout: float,
        max_connections: int = 8,
        max_attempts: int = 3,
        base_delay: float = 1.5,
    ):
        self.max_bytes = max_bytes
        self.timeout = timeout
        self.max_connections = max_connections
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections * 2,
                limit_per_host=self.max_connections,
                ttl_dns_cache=600,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(
                    total=self.timeout, sock_connect=15, sock_read=90
                ),
            )
            log.debug(f"Created download pool with limit_per_host={self.max_connections}")
        return self._session

    async def close(self) -> None:
        """Closes the connection pool."""
        if self._session and not self._session.closed:
            await self._session.close()
            log.debug("Downloader connection pool closed.")
        self._session = None

    async def __aenter__(self) -> "Downloader":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _check_declared_size(self, response: aiohttp.ClientResponse) -> None:
        declared = response.content_length
        if declared is not None and declared > self.max_bytes:
            raise TransferLimitError(
                f"Stream is {declared} bytes, above the {self.max_bytes} byte limit."
            )

    async def download(self, option: EncodingOption, destination: Path) -> int:
        """
        Streams an encoding into destination and returns the number of bytes
        written. Network errors are retried with exponential backoff; limit
        violations are not.
        """
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                session = await self._get_session()
                async with session.get(
                    option.url, headers=option.http_headers, allow_redirects=True
                ) as response:
                    response.raise_for_status()
                    self._check_declared_size(response)

                    bytes_written = 0
                    async with aiofiles.open(destination, "wb") as f:
                        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                            bytes_written += len(chunk)
                            if bytes_written > self.max_bytes:
                                raise TransferLimitError(
                                    f"Stream exceeded the {self.max_bytes} byte limit."
                                )
                            await f.write(chunk)
                return bytes_written
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{self.max_attempts} for "
                    f"'{os.path.basename(destination)}' failed: {e}. Retrying..."
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise TransferError(
            f"Transfer failed after {self.max_attempts} attempts: {last_exception}"
        ) from last_exception

    async def iter_stream(self, option: EncodingOption) -> AsyncIterator[bytes]:
        """Yields an encoding's bytes without staging them, for direct downloads."""
        session = await self._get_session()
        try:
            async with session.get(
                option.url, headers=option.http_headers, allow_redirects=True
            ) as response:
                response.raise_for_status()
                self._check_declared_size(response)
                sent = 0
                async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                    sent += len(chunk)
                    if sent > self.max_bytes:
                        raise TransferLimitError(
                            f"Stream exceeded the {self.max_bytes} byte limit."
                        )
                    yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferError(f"Stream failed: {e}") from e
