import datetime as dt
from typing import Any, Dict
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class StatsResponse(BaseModel):
    role: str
    stats: Dict[str, Any]


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    title: str
    description: str
    date: dt.datetime


class UpcomingEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    date: dt.date
    location: str
    status: str
