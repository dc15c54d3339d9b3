import datetime as dt
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from marketplace.services.tickets import MAX_TICKETS_PER_ORDER


class PurchaseRequest(BaseModel):
    event_id: UUID
    quantity: int = Field(1, ge=1, le=MAX_TICKETS_PER_ORDER)


class TicketEventSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    date: dt.date
    time: dt.time
    location: str


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    user_id: UUID
    quantity: int
    total_price: Decimal
    purchase_date: dt.datetime
    event: Optional[TicketEventSummary] = None
