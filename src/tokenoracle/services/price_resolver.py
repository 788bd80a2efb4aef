"""PriceResolver — cache → exact record → interpolation → live provider."""

import logging
import time

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.db.repos.price_record_repo import PriceRecordRepo
from tokenoracle.db.session import open_session
from tokenoracle.domain.enums import Network, PriceSource
from tokenoracle.domain.interpolation import interpolate
from tokenoracle.domain.models.price import PricePoint
from tokenoracle.exceptions import InvalidRequestError, PriceResolutionError, StoreUnavailableError
from tokenoracle.infra.cache.redis_cache import PriceCache, cache_key
from tokenoracle.infra.http.backoff import BackoffRegistry
from tokenoracle.infra.price.base import TokenPriceProvider
from tokenoracle.infra.price.coingecko import is_contract_address

logger = logging.getLogger(__name__)


def validate_request(token: str | None, network: str | None) -> tuple[str, Network]:
    """Reject missing or unsupported inputs before any tier is consulted.

    Contract addresses are lowercased so that checksummed and plain spellings
    share cache entries, stored records and backoff state.
    """
    token = (token or "").strip()
    if not token or not network:
        raise InvalidRequestError("Token and network are required")
    if is_contract_address(token.lower()):
        token = token.lower()
    try:
        return token, Network(network)
    except ValueError:
        raise InvalidRequestError(f"Unsupported network: {network}") from None


class PriceResolver:
    """Resolve a token price through the tier chain, writing every non-cache answer back to the cache.

    The store is optional: with no session factory, or when the database
    errors, the exact and interpolated tiers are skipped and the provider
    answers instead.
    """

    def __init__(
        self,
        provider: TokenPriceProvider,
        backoff: BackoffRegistry,
        cache: PriceCache | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        cache_ttl: int = 300,
    ) -> None:
        self._provider = provider
        self._backoff = backoff
        self._cache = cache
        self._session_factory = session_factory
        self._cache_ttl = cache_ttl

    async def resolve(self, token: str, network: Network | str, timestamp: int | None = None) -> PricePoint:
        token, network = validate_request(token, network)
        key = cache_key(token, network, timestamp)

        cached = await self._cache_lookup(key)
        if cached is not None:
            return cached

        result = None
        if timestamp is not None:
            result = await self._from_store(token, network, timestamp)
        if result is None:
            result = await self._from_provider(token, network, timestamp)

        if self._cache is not None:
            await self._cache.set_with_expiry(key, result.to_cache_bytes(), self._cache_ttl)
        return result

    async def _cache_lookup(self, key: str) -> PricePoint | None:
        if self._cache is None:
            return None
        raw = await self._cache.get(key)
        if not raw:
            return None
        try:
            return PricePoint.from_cache_bytes(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry %s", key)
            return None

    async def _from_store(self, token: str, network: Network, timestamp: int) -> PricePoint | None:
        try:
            async with open_session(self._session_factory) as session:
                repo = PriceRecordRepo(session)

                exact = await repo.get_exact(token, network, timestamp)
                if exact is not None:
                    return PricePoint(
                        token=token, network=network, timestamp=exact.timestamp,
                        price=exact.price, source=PriceSource.DATABASE,
                    )

                before, after = await repo.find_bracket(token, network, timestamp)
        except (StoreUnavailableError, SQLAlchemyError, OSError) as exc:
            logger.warning("Price store unavailable, skipping historical tiers for %s/%s: %s", token, network.value, exc)
            return None

        if before is None or after is None:
            return None
        if before.price is None or after.price is None:
            # A bracket around a provider miss has nothing to draw a line through
            return None

        if before.timestamp == after.timestamp:
            price = before.price
        else:
            price = interpolate(timestamp, before.timestamp, before.price, after.timestamp, after.price)
        return PricePoint(
            token=token, network=network, timestamp=timestamp, price=price, source=PriceSource.INTERPOLATED,
        )

    async def _from_provider(self, token: str, network: Network, timestamp: int | None) -> PricePoint:
        executor = self._backoff.for_context(token, network)
        try:
            price = await executor.execute(lambda: self._provider.get_price_at_date(token, network, timestamp))
        except Exception as exc:
            logger.error("Live price fetch failed for %s/%s at %s: %s", token, network.value, timestamp, exc)
            raise PriceResolutionError(f"Failed to fetch price for {token} on {network.value}") from exc

        return PricePoint(
            token=token,
            network=network,
            timestamp=timestamp if timestamp is not None else int(time.time()),
            price=price,
            source=PriceSource.LIVE,
        )
