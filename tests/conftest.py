import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tokenoracle.db.repos.price_record_repo import PriceRecordRepo
from tokenoracle.db.session import Base
from tokenoracle.domain.enums import Network
import tokenoracle.db.models  # noqa: F401 — register all models


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def session(session_factory) -> AsyncSession:
    async with session_factory() as sess:
        yield sess


@pytest.fixture()
def seed_prices(session_factory):
    """Commit (timestamp, price) records for a token so other sessions can see them."""

    async def _seed(token: str, network: Network, points: list[tuple[int, float | None]]) -> None:
        async with session_factory() as sess:
            await PriceRecordRepo(sess).upsert_many(token, network, points)
            await sess.commit()

    return _seed
