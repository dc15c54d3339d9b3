"""Public event catalog and organizer views."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from marketplace.core.access.checker import require_permission
from marketplace.core.access.permissions import Permission, Resource, Action
from marketplace.core.errors import NotFoundError
from marketplace.core.session import SessionContext
from marketplace.core.workflow.states import ReviewState
from marketplace.db.errors import store_errors
from marketplace.db.models import Event, Ticket

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


@dataclass
class OrganizerEventSummary:
    event: Event
    tickets_sold: int
    revenue: Decimal


class CatalogService:
    """Read side of events. Only approved events are public."""

    def __init__(self, db: Session):
        self.db = db

    def list_events(self, category: Optional[str] = None, search: Optional[str] = None) -> list[Event]:
        """Approved events, soonest first, optionally filtered."""
        query = self.db.query(Event).filter(Event.status == ReviewState.APPROVED.value)

        if category and category.lower() != ALL_CATEGORIES:
            query = query.filter(Event.category == category.lower())
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))

        with store_errors(self.db, "list events"):
            return query.order_by(Event.date.asc(), Event.time.asc()).all()

    def get_event(self, event_id: UUID) -> Event:
        """Public detail of an approved event."""
        with store_errors(self.db, "load event"):
            event = self.db.get(Event, event_id)
        if event is None or event.status != ReviewState.APPROVED.value:
            raise NotFoundError("Event", event_id)
        return event

    def categories(self) -> list[str]:
        """Categories that currently have approved events."""
        with store_errors(self.db, "list categories"):
            rows = (
                self.db.query(Event.category)
                .filter(Event.status == ReviewState.APPROVED.value)
                .distinct()
                .order_by(Event.category)
                .all()
            )
        return [row[0] for row in rows]

    def organizer_events(self, actor: SessionContext) -> list[OrganizerEventSummary]:
        """The caller's own events in every state, newest first, with sales totals."""
        require_permission(actor, Permission(Resource.EVENTS, Action.CREATE))

        sales = (
            self.db.query(
                Ticket.event_id.label("event_id"),
                func.coalesce(func.sum(Ticket.quantity), 0).label("sold"),
                func.coalesce(func.sum(Ticket.total_price), 0).label("revenue"),
            )
            .group_by(Ticket.event_id)
            .subquery()
        )
        with store_errors(self.db, "list organizer events"):
            rows = (
                self.db.query(Event, sales.c.sold, sales.c.revenue)
                .outerjoin(sales, sales.c.event_id == Event.id)
                .filter(Event.organizer_id == actor.user_id)
                .order_by(Event.created_at.desc())
                .all()
            )
        return [
            OrganizerEventSummary(event=event, tickets_sold=int(sold or 0), revenue=Decimal(str(revenue or 0)))
            for event, sold, revenue in rows
        ]
