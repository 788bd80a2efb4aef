from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from tokenoracle.db.models.price_record import PriceRecord
from tokenoracle.domain.enums import Network


def record_date(timestamp: int) -> date:
    """UTC calendar day a Unix timestamp falls on."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).date()


class PriceRecordRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_exact(self, token: str, network: Network, timestamp: int) -> Optional[PriceRecord]:
        result = await self._session.execute(
            select(PriceRecord).where(
                PriceRecord.token == token,
                PriceRecord.network == network.value,
                PriceRecord.timestamp == timestamp,
            )
        )
        return result.scalar_one_or_none()

    async def find_before(self, token: str, network: Network, timestamp: int) -> Optional[PriceRecord]:
        """Nearest record at or before ``timestamp``."""
        result = await self._session.execute(
            select(PriceRecord)
            .where(
                PriceRecord.token == token,
                PriceRecord.network == network.value,
                PriceRecord.timestamp <= timestamp,
            )
            .order_by(PriceRecord.timestamp.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_after(self, token: str, network: Network, timestamp: int) -> Optional[PriceRecord]:
        """Nearest record at or after ``timestamp``."""
        result = await self._session.execute(
            select(PriceRecord)
            .where(
                PriceRecord.token == token,
                PriceRecord.network == network.value,
                PriceRecord.timestamp >= timestamp,
            )
            .order_by(PriceRecord.timestamp.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_bracket(
        self, token: str, network: Network, timestamp: int
    ) -> tuple[Optional[PriceRecord], Optional[PriceRecord]]:
        before = await self.find_before(token, network, timestamp)
        after = await self.find_after(token, network, timestamp)
        return before, after

    async def upsert(self, token: str, network: Network, timestamp: int, price: float | None) -> None:
        await self.upsert_many(token, network, [(timestamp, price)])

    async def upsert_many(self, token: str, network: Network, points: list[tuple[int, float | None]]) -> int:
        """Insert or overwrite records keyed by (token, network, timestamp). Returns rows written."""
        if not points:
            return 0
        rows = [
            {
                "token": token,
                "network": network.value,
                "timestamp": ts,
                "price": price,
                "date": record_date(ts),
            }
            for ts, price in points
        ]
        dialect = self._session.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = insert(PriceRecord).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["token", "network", "timestamp"],
            set_={"price": stmt.excluded.price, "date": stmt.excluded.date, "updated_at": func.now()},
        )
        await self._session.execute(stmt)
        await self._session.flush()
        return len(rows)

    async def list_history(self, token: str, network: Network) -> list[tuple[int, float | None]]:
        result = await self._session.execute(
            select(PriceRecord.timestamp, PriceRecord.price)
            .where(PriceRecord.token == token, PriceRecord.network == network.value)
            .order_by(PriceRecord.timestamp.asc())
        )
        return [(row.timestamp, row.price) for row in result.all()]
