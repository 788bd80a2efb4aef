from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.db.repos.price_record_repo import PriceRecordRepo
from tokenoracle.db.session import open_session
from tokenoracle.exceptions import StoreUnavailableError
from tokenoracle.services.price_resolver import validate_request


async def load_history(
    session_factory: async_sessionmaker[AsyncSession] | None, token: str, network: str
) -> list[tuple[int, float | None]]:
    """All stored (timestamp, price) pairs for a token, oldest first. No other tier can answer this."""
    token, net = validate_request(token, network)
    try:
        async with open_session(session_factory) as session:
            return await PriceRecordRepo(session).list_history(token, net)
    except (SQLAlchemyError, OSError) as exc:
        raise StoreUnavailableError(f"Price store query failed: {exc}") from exc
