"""Ticket purchases."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from marketplace.core.access.checker import require_permission
from marketplace.core.access.permissions import Permission, Resource, Action
from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.core.session import SessionContext
from marketplace.core.workflow.states import ReviewState
from marketplace.db.errors import store_errors
from marketplace.db.models import Event, Ticket

logger = logging.getLogger(__name__)

MAX_TICKETS_PER_ORDER = 8


class TicketService:
    def __init__(self, db: Session):
        self.db = db

    def purchase(self, actor: SessionContext, event_id: UUID, quantity: int) -> Ticket:
        """
        Buy ``quantity`` tickets for an approved event.

        Capacity is not checked.

        Raises:
            ValidationError: Quantity outside 1..MAX_TICKETS_PER_ORDER
            NotFoundError: Event unknown or not approved
        """
        require_permission(actor, Permission(Resource.TICKETS, Action.PURCHASE))
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= MAX_TICKETS_PER_ORDER:
            raise ValidationError(
                "Invalid ticket quantity",
                fields={"quantity": f"Choose between 1 and {MAX_TICKETS_PER_ORDER} tickets"},
            )

        with store_errors(self.db, "purchase tickets"):
            event = self.db.get(Event, event_id)
            if event is None or event.status != ReviewState.APPROVED.value:
                raise NotFoundError("Event", event_id)

            ticket = Ticket(
                event_id=event.id,
                user_id=actor.user_id,
                quantity=quantity,
                total_price=event.price * quantity,
                purchase_date=datetime.utcnow(),
            )
            self.db.add(ticket)
            self.db.commit()
            self.db.refresh(ticket)

        logger.info("User %s bought %d tickets for event %s", actor.user_id, quantity, event_id)
        return ticket

    def list_own(self, actor: SessionContext) -> list[Ticket]:
        """The caller's tickets, most recent purchase first."""
        require_permission(actor, Permission(Resource.TICKETS, Action.LIST))
        with store_errors(self.db, "list tickets"):
            return (
                self.db.query(Ticket)
                .options(joinedload(Ticket.event))
                .filter(Ticket.user_id == actor.user_id)
                .order_by(Ticket.purchase_date.desc())
                .all()
            )
