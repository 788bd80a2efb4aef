import asyncio
import time
from collections import defaultdict
from urllib.parse import urlsplit

import httpx


class RateLimitedClient:
    """Async HTTP client that paces requests per upstream host.

    CoinGecko and Alchemy share one client but have separate budgets, so each
    host gets its own slot clock. ``host_rates`` overrides ``rate_per_second``
    for specific hosts.
    """

    def __init__(
        self,
        rate_per_second: float = 5.0,
        timeout: float = 30.0,
        host_rates: dict[str, float] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._default_interval = 1.0 / rate_per_second
        self._intervals = {host: 1.0 / rate for host, rate in (host_rates or {}).items()}
        self._last_request: dict[str, float] = defaultdict(float)
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def min_interval(self, host: str) -> float:
        return self._intervals.get(host, self._default_interval)

    async def _wait_for_slot(self, url: str) -> None:
        host = urlsplit(url).hostname or ""
        async with self._locks[host]:
            elapsed = time.monotonic() - self._last_request[host]
            interval = self.min_interval(host)
            if elapsed < interval:
                await asyncio.sleep(interval - elapsed)
            self._last_request[host] = time.monotonic()

    async def get(self, url: str, params: dict | None = None) -> httpx.Response:
        await self._wait_for_slot(url)
        return await self._client.get(url, params=params)

    async def post(self, url: str, json: dict | list | None = None) -> httpx.Response:
        await self._wait_for_slot(url)
        return await self._client.post(url, json=json)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
