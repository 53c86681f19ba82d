import asyncio
import logging
import time

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "forexnepal/0.1 (+historical-rates)",
}


class RateLimitedClient:
    """Async GET-only HTTP client that spaces calls to one upstream host.

    Share one instance per host.
    """

    def __init__(
        self,
        rate_per_second: float = 2.0,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        self._min_interval = 1.0 / rate_per_second
        self._next_slot = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=timeout, headers={**DEFAULT_HEADERS, **(headers or {})})
        self.request_count = 0

    async def _wait_for_slot(self) -> None:
        async with self._lock:
            delay = self._next_slot - time.monotonic()
            if delay > 0:
                logger.debug("Throttling upstream call for %.2fs", delay)
                await asyncio.sleep(delay)
            self._next_slot = time.monotonic() + self._min_interval

    async def get(self, url: str, params: dict | None = None, timeout: float | None = None) -> httpx.Response:
        await self._wait_for_slot()
        self.request_count += 1
        started = time.monotonic()
        kwargs = {"params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await self._client.get(url, **kwargs)
        logger.debug("GET %s %s -> %d in %.2fs", url, params or "", response.status_code, time.monotonic() - started)
        return response

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
