"""Alchemy JSON-RPC client — finds when a token first moved on-chain."""

import logging
from datetime import datetime
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tokenoracle.domain.enums import Network
from tokenoracle.exceptions import CreationDateNotFoundError, ExternalServiceError
from tokenoracle.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

BASE_URLS: dict[Network, str] = {
    Network.ETHEREUM: "https://eth-mainnet.g.alchemy.com/v2",
    Network.POLYGON: "https://polygon-mainnet.g.alchemy.com/v2",
}


class AlchemyClient:
    def __init__(self, api_key: str, network: Network, http_client: RateLimitedClient) -> None:
        if network not in BASE_URLS:
            raise ValueError(f"Unsupported network: {network}")
        self._api_key = api_key
        self._network = network
        self._http = http_client

    @property
    def network(self) -> Network:
        return self._network

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        return await self._http.post(f"{BASE_URLS[self._network]}/{self._api_key}", json=payload)

    async def _call(self, method: str, params: list[Any]) -> Any:
        if not self._api_key:
            raise ExternalServiceError("ALCHEMY_API_KEY is not set")

        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            resp = await self._post(payload)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Alchemy {method} request failed: {exc}") from exc

        if resp.status_code == 429:
            raise ExternalServiceError(f"Alchemy rate limit (429) on {method}")
        if resp.status_code != 200:
            raise ExternalServiceError(f"Alchemy returned {resp.status_code} for {method}")

        data = resp.json()
        if "error" in data:
            error = data["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ExternalServiceError(f"Alchemy {method} error: {message}")
        return data.get("result")

    async def get_first_transfer(self, token: str) -> dict | None:
        result = await self._call(
            "alchemy_getAssetTransfers",
            [{
                "fromBlock": "0x0",
                "toBlock": "latest",
                "contractAddresses": [token],
                "category": ["erc20"],
                "order": "asc",
                "maxCount": "0x1",
                "withMetadata": True,
                "excludeZeroValue": False,
            }],
        )
        transfers = (result or {}).get("transfers") or []
        return transfers[0] if transfers else None

    async def get_block_timestamp(self, block_number: int) -> int | None:
        block = await self._call("eth_getBlockByNumber", [hex(block_number), False])
        if not block or not block.get("timestamp"):
            return None
        return int(block["timestamp"], 16)

    async def get_earliest_transfer_timestamp(self, token: str) -> int:
        """Unix timestamp of the token's first ERC-20 transfer."""
        transfer = await self.get_first_transfer(token)
        if transfer is None:
            raise CreationDateNotFoundError(f"No transfers found for {token} on {self._network.value}")

        block_ts = (transfer.get("metadata") or {}).get("blockTimestamp")
        if block_ts:
            return int(datetime.fromisoformat(block_ts.replace("Z", "+00:00")).timestamp())

        block_number = int(transfer["blockNum"], 16)
        timestamp = await self.get_block_timestamp(block_number)
        if timestamp is None:
            raise CreationDateNotFoundError(f"Block {block_number} has no timestamp for {token}")
        logger.debug("First transfer of %s on %s at block %d (%d)", token, self._network.value, block_number, timestamp)
        return timestamp
