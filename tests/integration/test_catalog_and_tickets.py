"""Integration tests for the public catalog and ticket purchases."""

import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from marketplace.core.errors import NotAuthenticatedError, NotAuthorizedError, NotFoundError, ValidationError
from marketplace.core.session import SessionContext
from marketplace.services import CatalogService, TicketService
from marketplace.services.tickets import MAX_TICKETS_PER_ORDER

from tests.factories import create_event, create_ticket, create_user


@pytest.fixture()
def catalog(db_session):
    return CatalogService(db_session)


@pytest.fixture()
def tickets(db_session):
    return TicketService(db_session)


@pytest.fixture()
def concert(db_session, seller):
    event = create_event(
        db_session,
        organizer=seller,
        title="Harbour Lights Concert",
        status="approved",
        event_date=date.today() + timedelta(days=5),
        price=Decimal("30.00"),
        category="music",
    )
    db_session.commit()
    return event


class TestCatalog:

    def test_only_approved_events_soonest_first(self, catalog, db_session, seller):
        later = create_event(db_session, organizer=seller, status="approved", event_date=date.today() + timedelta(days=20))
        sooner = create_event(db_session, organizer=seller, status="approved", event_date=date.today() + timedelta(days=2))
        create_event(db_session, organizer=seller, status="pending")
        create_event(db_session, organizer=seller, status="rejected")
        db_session.commit()

        assert [e.id for e in catalog.list_events()] == [sooner.id, later.id]

    def test_category_filter(self, catalog, db_session, concert):
        create_event(db_session, status="approved", category="sports")
        db_session.commit()

        assert [e.id for e in catalog.list_events(category="Music")] == [concert.id]
        assert len(catalog.list_events(category="all")) == 2
        assert catalog.categories() == ["music", "sports"]

    def test_search_matches_title_and_description(self, catalog, db_session, concert):
        other = create_event(db_session, status="approved", title="Chess Open")
        other.description = "Rapid games by the harbour"
        db_session.commit()

        assert {e.id for e in catalog.list_events(search="harbour")} == {concert.id, other.id}
        assert [e.id for e in catalog.list_events(search="chess")] == [other.id]
        assert catalog.list_events(search="opera") == []

    def test_event_detail(self, catalog, concert):
        assert catalog.get_event(concert.id).title == "Harbour Lights Concert"
        with pytest.raises(NotFoundError):
            catalog.get_event(uuid.uuid4())

    def test_organizer_events_with_sales(self, catalog, db_session, seller, seller_ctx, concert, user):
        quiet = create_event(db_session, organizer=seller, status="pending", created_at=datetime(2020, 1, 1))
        create_ticket(db_session, event=concert, user=user, quantity=2)
        create_ticket(db_session, event=concert, user=user, quantity=3)
        db_session.commit()

        summaries = {s.event.id: s for s in catalog.organizer_events(seller_ctx)}
        assert summaries[concert.id].tickets_sold == 5
        assert summaries[concert.id].revenue == Decimal("150.00")
        assert summaries[quiet.id].tickets_sold == 0
        assert summaries[quiet.id].revenue == Decimal("0")

    def test_organizer_events_need_seller(self, catalog, user_ctx):
        with pytest.raises(NotAuthorizedError):
            catalog.organizer_events(user_ctx)


class TestPurchase:

    def test_purchase_totals_price(self, tickets, user_ctx, user, concert):
        ticket = tickets.purchase(user_ctx, concert.id, 3)
        assert ticket.quantity == 3
        assert ticket.total_price == Decimal("90.00")
        assert ticket.user_id == user.id

    def test_sellers_and_admins_may_buy(self, tickets, seller_ctx, admin_ctx, concert):
        assert tickets.purchase(seller_ctx, concert.id, 1).quantity == 1
        assert tickets.purchase(admin_ctx, concert.id, 1).quantity == 1

    @pytest.mark.parametrize("quantity", [0, -1, MAX_TICKETS_PER_ORDER + 1, True, "2", 1.5])
    def test_invalid_quantity(self, tickets, user_ctx, concert, quantity):
        with pytest.raises(ValidationError) as exc_info:
            tickets.purchase(user_ctx, concert.id, quantity)
        assert "quantity" in exc_info.value.fields

    def test_pending_event_cannot_be_bought(self, tickets, user_ctx, db_session):
        pending = create_event(db_session, status="pending")
        db_session.commit()
        with pytest.raises(NotFoundError):
            tickets.purchase(user_ctx, pending.id, 1)

    def test_anonymous_cannot_buy(self, tickets, concert):
        with pytest.raises(NotAuthenticatedError):
            tickets.purchase(SessionContext.anonymous(), concert.id, 1)

    def test_list_own_latest_first(self, tickets, db_session, user, user_ctx, concert):
        first = create_ticket(db_session, event=concert, user=user, purchase_date=datetime(2024, 1, 1))
        second = create_ticket(db_session, event=concert, user=user, purchase_date=datetime(2024, 2, 1))
        create_ticket(db_session, event=concert, user=create_user(db_session))
        db_session.commit()

        owned = tickets.list_own(user_ctx)
        assert [t.id for t in owned] == [second.id, first.id]
        assert owned[0].event.title == "Harbour Lights Concert"
