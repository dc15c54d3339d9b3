from typing import List

from fastapi import APIRouter, Depends, status

from marketplace.api.deps import get_session_context, get_tickets
from marketplace.api.schemas.tickets import PurchaseRequest, TicketResponse
from marketplace.core.session import SessionContext
from marketplace.services import TicketService

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def purchase_tickets(
    body: PurchaseRequest,
    context: SessionContext = Depends(get_session_context),
    tickets: TicketService = Depends(get_tickets),
):
    """Buy tickets for an approved event."""
    return tickets.purchase(context, body.event_id, body.quantity)


@router.get("/mine", response_model=List[TicketResponse])
def list_my_tickets(
    context: SessionContext = Depends(get_session_context),
    tickets: TicketService = Depends(get_tickets),
):
    return tickets.list_own(context)
