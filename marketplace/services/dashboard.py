"""Role dashboards: headline stats, recent activity and upcoming events."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from marketplace.core.access.checker import require_permission
from marketplace.core.access.permissions import Permission, Resource, Action
from marketplace.core.access.roles import Role, SellerStatus
from marketplace.core.session import SessionContext
from marketplace.core.workflow.states import ReviewState
from marketplace.db.errors import store_errors
from marketplace.db.models import Event, SellerApplication, Ticket, User

RECENT_LIMIT = 3
UPCOMING_LIMIT = 3


@dataclass
class ActivityItem:
    id: str
    type: str  # ticket_purchased, application_submitted, event_created, event_approved
    title: str
    description: str
    date: datetime


@dataclass
class DashboardStats:
    role: Role
    values: dict = field(default_factory=dict)


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def stats(self, actor: SessionContext) -> DashboardStats:
        role = require_permission(actor, Permission(Resource.DASHBOARD, Action.READ))
        with store_errors(self.db, "dashboard stats"):
            if role == Role.ADMIN:
                values = self._admin_stats()
            elif role == Role.SELLER:
                values = self._seller_stats(actor)
            else:
                values = self._user_stats(actor)
        return DashboardStats(role=role, values=values)

    def recent_activity(self, actor: SessionContext) -> list[ActivityItem]:
        role = require_permission(actor, Permission(Resource.DASHBOARD, Action.READ))
        items: list[ActivityItem] = []

        with store_errors(self.db, "recent activity"):
            if role == Role.USER:
                tickets = (
                    self.db.query(Ticket)
                    .options(joinedload(Ticket.event))
                    .filter(Ticket.user_id == actor.user_id)
                    .order_by(Ticket.purchase_date.desc())
                    .limit(RECENT_LIMIT)
                    .all()
                )
                for ticket in tickets:
                    items.append(ActivityItem(
                        id=str(ticket.id),
                        type="ticket_purchased",
                        title="Purchased Ticket",
                        description=f"{ticket.event.title if ticket.event else 'Event'} x{ticket.quantity}",
                        date=ticket.purchase_date,
                    ))

                application = self._pending_application(actor)
                if application is not None:
                    items.append(ActivityItem(
                        id=str(application.id),
                        type="application_submitted",
                        title="Seller Application Submitted",
                        description="Your application is under review",
                        date=application.created_at,
                    ))
            else:
                events = (
                    self.db.query(Event)
                    .filter(Event.organizer_id == actor.user_id)
                    .order_by(Event.created_at.desc())
                    .limit(RECENT_LIMIT)
                    .all()
                )
                for event in events:
                    approved = event.status == ReviewState.APPROVED.value
                    items.append(ActivityItem(
                        id=str(event.id),
                        type="event_approved" if approved else "event_created",
                        title="Event Approved" if approved else "Event Created",
                        description=event.title,
                        date=event.created_at,
                    ))

        items.sort(key=lambda item: item.date, reverse=True)
        return items[:RECENT_LIMIT]

    def upcoming_events(self, actor: SessionContext, today: Optional[date] = None) -> list[Event]:
        """Events the user holds tickets for, or the organizer's own, from today on."""
        role = require_permission(actor, Permission(Resource.DASHBOARD, Action.READ))
        today = today or date.today()

        with store_errors(self.db, "upcoming events"):
            if role == Role.USER:
                query = (
                    self.db.query(Event)
                    .join(Ticket, Ticket.event_id == Event.id)
                    .filter(Ticket.user_id == actor.user_id)
                    .distinct()
                )
            else:
                query = self.db.query(Event).filter(Event.organizer_id == actor.user_id)

            return (
                query.filter(Event.date >= today)
                .order_by(Event.date.asc())
                .limit(UPCOMING_LIMIT)
                .all()
            )

    def _admin_stats(self) -> dict:
        return {
            "total_users": self.db.query(func.count(User.id)).scalar() or 0,
            "total_events": self._count_events(ReviewState.APPROVED),
            "pending_applications": (
                self.db.query(func.count(SellerApplication.id))
                .filter(SellerApplication.status == ReviewState.PENDING.value)
                .scalar() or 0
            ),
            "pending_events": self._count_events(ReviewState.PENDING),
        }

    def _seller_stats(self, actor: SessionContext) -> dict:
        counts = dict(
            self.db.query(Event.status, func.count(Event.id))
            .filter(Event.organizer_id == actor.user_id)
            .group_by(Event.status)
            .all()
        )
        sold, revenue = (
            self.db.query(
                func.coalesce(func.sum(Ticket.quantity), 0),
                func.coalesce(func.sum(Ticket.total_price), 0),
            )
            .join(Event, Ticket.event_id == Event.id)
            .filter(Event.organizer_id == actor.user_id)
            .one()
        )
        return {
            "active_events": counts.get(ReviewState.APPROVED.value, 0),
            "pending_events": counts.get(ReviewState.PENDING.value, 0),
            "total_tickets_sold": int(sold),
            "total_revenue": Decimal(str(revenue)),
        }

    def _user_stats(self, actor: SessionContext) -> dict:
        purchased, spent = (
            self.db.query(func.count(Ticket.id), func.coalesce(func.sum(Ticket.total_price), 0))
            .filter(Ticket.user_id == actor.user_id)
            .one()
        )
        upcoming = (
            self.db.query(func.count(Ticket.id))
            .join(Event, Ticket.event_id == Event.id)
            .filter(Ticket.user_id == actor.user_id, Event.date >= date.today())
            .scalar() or 0
        )
        return {
            "tickets_purchased": purchased,
            "upcoming_events": upcoming,
            "total_spent": Decimal(str(spent)),
        }

    def _count_events(self, state: ReviewState) -> int:
        return self.db.query(func.count(Event.id)).filter(Event.status == state.value).scalar() or 0

    def _pending_application(self, actor: SessionContext) -> Optional[SellerApplication]:
        if actor.profile is None or actor.profile.seller_status != SellerStatus.PENDING.value:
            return None
        return (
            self.db.query(SellerApplication)
            .filter(
                SellerApplication.user_id == actor.user_id,
                SellerApplication.status == ReviewState.PENDING.value,
            )
            .order_by(SellerApplication.created_at.desc())
            .first()
        )
