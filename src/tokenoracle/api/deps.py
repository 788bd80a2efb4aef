from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.container import Container
from tokenoracle.services.price_resolver import PriceResolver
from tokenoracle.services.scheduler import BackfillScheduler


@inject
def get_session_factory(
    session_factory: async_sessionmaker[AsyncSession] = Depends(Provide[Container.session_factory]),
) -> async_sessionmaker[AsyncSession]:
    return session_factory


@inject
def get_resolver(resolver: PriceResolver = Depends(Provide[Container.price_resolver])) -> PriceResolver:
    return resolver


@inject
def get_scheduler(scheduler: BackfillScheduler = Depends(Provide[Container.scheduler])) -> BackfillScheduler:
    return scheduler
