"""
Provides a fixed-window request quota per client for expensive endpoints.
"""

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, Iterable

from aiohttp import web

log = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

RATE_LIMIT_MESSAGE = "Too many download requests, try later."


class FixedWindowRateLimiter:
    """
    Allows at most `max_requests` per client within each `window` seconds.
    The window starts with the client's first request.
    """

    def __init__(
        self,
        max_requests: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initializes the rate limiter.

        Args:
            max_requests: Number of requests a client may make per window.
            window: Length of the window in seconds.
            clock: Monotonic time source, replaceable in tests.
        """
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    def _prune(self, now: float) -> None:
        expired = [k for k, (start, _) in self._windows.items() if now - start >= self.window]
        for key in expired:
            del self._windows[key]

    async def acquire(self, client: str) -> float:
        """
        Records a request for client.

        Returns:
            0 if the request is allowed, otherwise the seconds until the
            client's window resets.
        """
        async with self._lock:
            now = self._clock()
            self._prune(now)
            start, count = self._windows.get(client, (now, 0))
            if count >= self.max_requests:
                retry_after = self.window - (now - start)
                log.warning(
                    f"[yellow]Rate limit hit for {client}. "
                    f"Retry in {retry_after:.0f}s.[/yellow]"
                )
                return retry_after
            self._windows[client] = (start, count + 1)
            return 0.0


def rate_limit_middleware(
    limiter: FixedWindowRateLimiter, paths: Iterable[str]
) -> Callable:
    """Builds an aiohttp middleware that applies limiter to the given paths."""
    limited_paths = frozenset(paths)

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.path not in limited_paths:
            return await handler(request)
        retry_after = await limiter.acquire(request.remote or "unknown")
        if retry_after > 0:
            return web.Response(
                status=429,
                text=RATE_LIMIT_MESSAGE,
                headers={"Retry-After": str(math.ceil(retry_after))},
            )
        return await handler(request)

    return middleware
