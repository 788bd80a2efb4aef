from typing import Optional

from pydantic import BaseModel

from tokenoracle.domain.enums import JobState, Network, PriceSource


class PriceResponse(BaseModel):
    price: Optional[float]
    timestamp: int
    token: str
    network: Network
    source: PriceSource

    model_config = {"from_attributes": True}


class ScheduleRequest(BaseModel):
    # Optional so that a missing field is reported as a 400 client error, like a bad network
    token: Optional[str] = None
    network: Optional[str] = None


class ScheduleResponse(BaseModel):
    message: str
    job_id: Optional[str] = None
    start_date: Optional[int] = None


class HistoryPoint(BaseModel):
    timestamp: int
    price: Optional[float]


class JobStatusResponse(BaseModel):
    job_id: str
    state: JobState
    progress: int
