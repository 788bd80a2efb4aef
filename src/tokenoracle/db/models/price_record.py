"""Historical daily token prices written by the backfill worker."""

import datetime as dt

from sqlalchemy import BigInteger, Date, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from tokenoracle.db.session import Base, TimestampMixin


class PriceRecord(TimestampMixin, Base):
    """One USD price per (token, network, timestamp). ``price`` is NULL when the provider had no quote."""

    __tablename__ = "historical_prices"
    __table_args__ = (
        UniqueConstraint("token", "network", "timestamp", name="uq_historical_prices_token_network_timestamp"),
        Index("ix_historical_prices_lookup", "token", "network", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token: Mapped[str] = mapped_column(String(255))
    network: Mapped[str] = mapped_column(String(20))
    timestamp: Mapped[int] = mapped_column(BigInteger)  # Unix seconds
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date)  # UTC calendar day of timestamp
