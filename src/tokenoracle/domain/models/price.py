"""Domain types for price resolution and historical backfill."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from tokenoracle.domain.enums import Network, PriceSource


class PricePoint(BaseModel):
    """A resolved price. ``price=None`` means the provider had no data, not a zero price."""

    model_config = ConfigDict(frozen=True)

    token: str
    network: Network
    timestamp: int  # Unix seconds
    price: float | None
    source: PriceSource

    def to_cache_bytes(self) -> bytes:
        """Serialize without ``source``; it is re-stamped as ``cache`` on read."""
        return self.model_dump_json(exclude={"source"}).encode()

    @classmethod
    def from_cache_bytes(cls, raw: bytes | str) -> "PricePoint":
        payload = _CachedPrice.model_validate_json(raw)
        return cls(**payload.model_dump(), source=PriceSource.CACHE)


class _CachedPrice(BaseModel):
    token: str
    network: Network
    timestamp: int
    price: float | None


class BackfillJob(BaseModel):
    """Payload of a queued historical backfill."""

    token: str
    network: Network
    start_date: int  # Unix seconds of the token's first transfer
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    job_id: str | None = None


class BackfillOutcome(BaseModel):
    """Summary returned by a finished backfill run."""

    total: int
    stored: int
    failed_dates: list[int] = []

    @property
    def failed(self) -> int:
        return len(self.failed_dates)
