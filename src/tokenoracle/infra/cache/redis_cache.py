"""Short-lived price cache on Redis. An unreachable Redis behaves like an empty cache."""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from tokenoracle.domain.enums import Network

logger = logging.getLogger(__name__)


def cache_key(token: str, network: Network | str, timestamp: int | None) -> str:
    network_value = network.value if isinstance(network, Network) else network
    return f"price:{token}:{network_value}:{timestamp if timestamp is not None else 'current'}"


class PriceCache:
    def __init__(self, redis_client: aioredis.Redis) -> None:
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> "PriceCache":
        return cls(aioredis.from_url(redis_url))

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._redis.get(key)
        except (RedisError, OSError) as exc:
            logger.warning("Price cache read failed for %s, treating as miss: %s", key, exc)
            return None

    async def set_with_expiry(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(key, ttl_seconds, value)
        except (RedisError, OSError) as exc:
            logger.warning("Price cache write failed for %s: %s", key, exc)

    async def close(self) -> None:
        await self._redis.aclose()
