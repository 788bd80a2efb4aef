"""MarketPriceProvider — CoinGecko for prices, Alchemy for token creation dates."""

import logging

from tokenoracle.domain.enums import Network
from tokenoracle.exceptions import CreationDateNotFoundError
from tokenoracle.infra.blockchain.alchemy_client import AlchemyClient
from tokenoracle.infra.price.base import TokenPriceProvider
from tokenoracle.infra.price.coingecko import CoinGeckoProvider

logger = logging.getLogger(__name__)


class MarketPriceProvider(TokenPriceProvider):
    def __init__(self, coingecko: CoinGeckoProvider, alchemy: dict[Network, AlchemyClient]) -> None:
        self._coingecko = coingecko
        self._alchemy = alchemy

    async def get_price_at_date(self, token: str, network: Network, timestamp: int | None) -> float | None:
        if timestamp is None:
            return await self._coingecko.get_current_price(token, network)
        return await self._coingecko.get_price_at_date(token, network, timestamp)

    async def get_earliest_transfer_timestamp(self, token: str, network: Network) -> int:
        client = self._alchemy.get(network)
        if client is None:
            raise CreationDateNotFoundError(f"Unsupported network: {network}")
        return await client.get_earliest_transfer_timestamp(token)


def build_price_provider(http_client, coingecko_api_key: str = "", alchemy_api_key: str = "") -> MarketPriceProvider:
    """Wire CoinGecko plus one Alchemy client per supported network onto a shared HTTP client."""
    if not alchemy_api_key:
        logger.warning("ALCHEMY_API_KEY is not set; token creation dates cannot be resolved")
    coingecko = CoinGeckoProvider(http_client, api_key=coingecko_api_key)
    alchemy = {network: AlchemyClient(alchemy_api_key, network, http_client) for network in Network}
    return MarketPriceProvider(coingecko, alchemy)
