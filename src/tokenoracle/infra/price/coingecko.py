"""CoinGecko price provider — daily historical and current USD prices for ERC-20 tokens."""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from tokenoracle.domain.enums import Network
from tokenoracle.exceptions import ExternalServiceError
from tokenoracle.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

COINGECKO_HOST = "api.coingecko.com"
BASE_URL = f"https://{COINGECKO_HOST}"

# CoinGecko asset platform ids
PLATFORMS: dict[Network, str] = {
    Network.ETHEREUM: "ethereum",
    Network.POLYGON: "polygon-pos",
}


def is_contract_address(token: str) -> bool:
    return token.startswith("0x") and len(token) == 42


def history_date(timestamp: int) -> str:
    """CoinGecko /history takes a UTC calendar day as dd-mm-yyyy."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%d-%m-%Y")


class CoinGeckoProvider:
    """Fetch USD prices from CoinGecko.

    ``token`` is either a contract address on ``network`` or a CoinGecko coin id
    (e.g. ``usd-coin``). Failures raise ExternalServiceError; a successful
    response without a USD quote yields None.
    """

    def __init__(self, http_client: RateLimitedClient, api_key: str = "") -> None:
        self._http = http_client
        self._api_key = api_key
        self._coin_ids: dict[tuple[Network, str], str] = {}

    async def get_price_at_date(self, token: str, network: Network, timestamp: int) -> float | None:
        coin_id = await self.resolve_coin_id(token, network)
        data = await self._get_json(
            f"/api/v3/coins/{coin_id}/history",
            {"date": history_date(timestamp), "localization": "false"},
        )
        price = (data.get("market_data") or {}).get("current_price", {}).get("usd")
        if price is None:
            logger.info("CoinGecko has no USD price for %s on %s", coin_id, history_date(timestamp))
            return None
        return float(price)

    async def get_current_price(self, token: str, network: Network) -> float | None:
        if is_contract_address(token):
            address = token.lower()
            data = await self._get_json(
                f"/api/v3/simple/token_price/{PLATFORMS[network]}",
                {"contract_addresses": address, "vs_currencies": "usd"},
            )
            quote = data.get(address) or {}
        else:
            data = await self._get_json("/api/v3/simple/price", {"ids": token, "vs_currencies": "usd"})
            quote = data.get(token) or {}
        price = quote.get("usd")
        return float(price) if price is not None else None

    async def resolve_coin_id(self, token: str, network: Network) -> str:
        """Map a contract address to its CoinGecko coin id; anything else is taken as an id already."""
        if not is_contract_address(token):
            return token
        key = (network, token.lower())
        if key in self._coin_ids:
            return self._coin_ids[key]

        data = await self._get_json(f"/api/v3/coins/{PLATFORMS[network]}/contract/{token.lower()}", {})
        coin_id = data.get("id")
        if not coin_id:
            raise ExternalServiceError(f"CoinGecko returned no coin id for {network.value}:{token}")
        self._coin_ids[key] = coin_id
        return coin_id

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        if self._api_key:
            params = {**params, "x_cg_demo_api_key": self._api_key}
        try:
            response = await self._http.get(f"{BASE_URL}{path}", params=params)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"CoinGecko request failed: {exc}") from exc

        if response.status_code == 429:
            raise ExternalServiceError("CoinGecko rate limit (429)")
        if response.status_code == 404:
            raise ExternalServiceError(f"CoinGecko has no data at {path}")
        if response.status_code != 200:
            raise ExternalServiceError(f"CoinGecko returned {response.status_code} for {path}")

        data = response.json()
        if not isinstance(data, dict):
            raise ExternalServiceError(f"Unexpected CoinGecko payload for {path}")
        return data
