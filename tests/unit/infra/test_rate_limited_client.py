"""Tests for RateLimitedClient per-host pacing."""

import time

import httpx

from tokenoracle.infra.http.rate_limited_client import RateLimitedClient


def _transport(seen: list[str]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        return httpx.Response(200, json={"ok": True})

    return httpx.MockTransport(handler)


class TestRateLimitedClient:
    async def test_forwards_requests(self):
        seen: list[str] = []
        async with RateLimitedClient(rate_per_second=1000, transport=_transport(seen)) as client:
            resp = await client.get("https://api.coingecko.com/api/v3/ping", params={"a": "1"})
            await client.post("https://eth-mainnet.g.alchemy.com/v2/key", json={"id": 1})
        assert resp.json() == {"ok": True}
        assert seen == ["api.coingecko.com", "eth-mainnet.g.alchemy.com"]

    async def test_same_host_is_spaced(self):
        seen: list[str] = []
        async with RateLimitedClient(rate_per_second=10, transport=_transport(seen)) as client:
            start = time.monotonic()
            for _ in range(3):
                await client.get("https://api.coingecko.com/x")
            elapsed = time.monotonic() - start
        assert elapsed >= 0.18

    async def test_hosts_have_independent_slots(self):
        seen: list[str] = []
        client = RateLimitedClient(rate_per_second=1, host_rates={"eth-mainnet.g.alchemy.com": 1000}, transport=_transport(seen))
        async with client:
            await client.get("https://api.coingecko.com/x")
            start = time.monotonic()
            await client.post("https://eth-mainnet.g.alchemy.com/v2/k", json={})
            await client.post("https://eth-mainnet.g.alchemy.com/v2/k", json={})
            elapsed = time.monotonic() - start
        assert elapsed < 0.5

    def test_host_override(self):
        client = RateLimitedClient(rate_per_second=5, host_rates={"api.coingecko.com": 0.5})
        assert client.min_interval("api.coingecko.com") == 2.0
        assert client.min_interval("other") == 0.2
