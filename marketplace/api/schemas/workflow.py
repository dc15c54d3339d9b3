import datetime as dt
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from marketplace.core.workflow import ReviewDecision


class DecisionRequest(BaseModel):
    decision: ReviewDecision


class SellerApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    business_name: str
    business_type: str
    website: Optional[str]
    experience: str
    event_types: str
    status: str
    created_at: dt.datetime
    updated_at: dt.datetime


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str]
    date: dt.date
    time: dt.time
    location: str
    price: Decimal
    capacity: int
    category: str
    image_url: Optional[str]
    organizer_id: Optional[UUID]
    status: str
    reviewed_by: Optional[UUID]
    reviewed_at: Optional[dt.datetime]
    created_at: dt.datetime
    updated_at: dt.datetime


class OrganizerEventResponse(BaseModel):
    event: EventResponse
    tickets_sold: int
    revenue: Decimal


class ReviewHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subject: str
    entity_id: UUID
    from_state: str
    to_state: str
    decision: str
    actor_id: Optional[UUID]
    created_at: dt.datetime


class CategoryListResponse(BaseModel):
    categories: List[str]
