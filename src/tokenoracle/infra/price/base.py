"""Abstract price provider consulted by the resolver, scheduler and backfill worker."""

from abc import ABC, abstractmethod

from tokenoracle.domain.enums import Network


class TokenPriceProvider(ABC):
    """External source of token prices and on-chain creation dates. Both calls may fail."""

    @abstractmethod
    async def get_price_at_date(self, token: str, network: Network, timestamp: int | None) -> float | None:
        """USD price at ``timestamp`` (current price when None). None = provider has no quote."""

    @abstractmethod
    async def get_earliest_transfer_timestamp(self, token: str, network: Network) -> int:
        """Unix timestamp of the token's first transfer. Raises CreationDateNotFoundError."""
