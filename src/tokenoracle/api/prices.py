from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tokenoracle.api.deps import get_resolver, get_scheduler, get_session_factory
from tokenoracle.api.schemas.prices import (
    HistoryPoint,
    JobStatusResponse,
    PriceResponse,
    ScheduleRequest,
    ScheduleResponse,
)
from tokenoracle.services.history import load_history
from tokenoracle.services.price_resolver import PriceResolver
from tokenoracle.services.scheduler import BackfillScheduler, job_progress

router = APIRouter(prefix="/api", tags=["prices"])

ResolverDep = Annotated[PriceResolver, Depends(get_resolver)]
SchedulerDep = Annotated[BackfillScheduler, Depends(get_scheduler)]
SessionFactoryDep = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


@router.get("/price", response_model=PriceResponse)
async def get_price(
    resolver: ResolverDep,
    token: Optional[str] = Query(None),
    network: Optional[str] = Query(None),
    timestamp: Optional[int] = Query(None, description="Unix seconds; omit for the current price"),
) -> PriceResponse:
    point = await resolver.resolve(token, network, timestamp)
    return PriceResponse.model_validate(point)


@router.post("/schedule", response_model=ScheduleResponse)
async def schedule_backfill(body: ScheduleRequest, scheduler: SchedulerDep) -> ScheduleResponse:
    """Enqueue a historical backfill from the token's first on-chain transfer."""
    job = await scheduler.schedule(body.token, body.network)
    return ScheduleResponse(
        message="Historical price fetching scheduled", job_id=job.job_id, start_date=job.start_date,
    )


@router.get("/history", response_model=list[HistoryPoint])
async def get_history(
    session_factory: SessionFactoryDep,
    token: Optional[str] = Query(None),
    network: Optional[str] = Query(None),
) -> list[HistoryPoint]:
    rows = await load_history(session_factory, token, network)
    return [HistoryPoint(timestamp=ts, price=price) for ts, price in rows]


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
def get_job_status(job_id: str) -> JobStatusResponse:
    """Backfill progress. Sync route: the Celery result backend client blocks."""
    state, progress = job_progress(job_id)
    return JobStatusResponse(job_id=job_id, state=state, progress=progress)
