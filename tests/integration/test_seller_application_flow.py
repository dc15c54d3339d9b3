"""Integration tests for the seller application workflow.

Tests end-to-end flows:
1. Submit -> approve promotes the applicant to seller
2. Submit -> reject records the outcome, applicant may apply again
3. Decided applications cannot be decided again, also across sessions
4. A failing user update leaves a retryable partial failure
"""

import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from marketplace.core.errors import (
    InvalidTransitionError,
    NotAuthenticatedError,
    NotAuthorizedError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from marketplace.core.access.roles import Role
from marketplace.core.session import SessionContext
from marketplace.core.workflow import ReviewState, ReviewSubject, WorkflowService
from marketplace.db.base import Base
from marketplace.db.models import ReviewHistory, SellerApplication, User

from tests.factories import context_for, create_application, create_user


APPLICATION = {
    "business_name": "Night Owl Promotions",
    "business_type": "company",
    "website": "https://nightowl.example.com",
    "experience": "Eight years booking club nights",
    "event_types": "Club nights, DJ sets",
}


@pytest.fixture()
def workflow(db_session):
    return WorkflowService(db_session)


@pytest.fixture()
def submitted(workflow, user_ctx):
    return workflow.submit_seller_application(user_ctx, APPLICATION)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class TestSubmit:

    def test_submission_is_pending_and_marks_user(self, submitted, user):
        assert submitted.status == ReviewState.PENDING.value
        assert submitted.user_id == user.id
        assert submitted.business_type == "company"
        assert user.seller_status == "pending"
        assert user.role == Role.USER.value

    def test_second_pending_application_rejected(self, workflow, user_ctx, submitted):
        with pytest.raises(ValidationError):
            workflow.submit_seller_application(user_ctx, APPLICATION)

    def test_missing_fields_rejected(self, workflow, user_ctx, db_session):
        with pytest.raises(ValidationError) as exc_info:
            workflow.submit_seller_application(user_ctx, {**APPLICATION, "experience": ""})
        assert "experience" in exc_info.value.fields
        assert db_session.query(SellerApplication).count() == 0

    def test_sellers_and_admins_cannot_apply(self, workflow, seller_ctx, admin_ctx):
        for context in (seller_ctx, admin_ctx):
            with pytest.raises(NotAuthorizedError):
                workflow.submit_seller_application(context, APPLICATION)

    def test_anonymous_cannot_apply(self, workflow):
        with pytest.raises(NotAuthenticatedError):
            workflow.submit_seller_application(SessionContext.anonymous(), APPLICATION)

    def test_missing_profile_row_stores_nothing(self, workflow, db_session):
        detached = User(id=uuid.uuid4(), email="gone@example.com", role=Role.USER.value, seller_status="none")

        with pytest.raises(NotFoundError):
            workflow.submit_seller_application(context_for(detached), APPLICATION)

        assert db_session.query(SellerApplication).count() == 0


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class TestDecide:

    def test_approval_promotes_applicant(self, workflow, admin_ctx, admin, submitted, user, db_session):
        application = workflow.decide_seller_application(admin_ctx, submitted.id, "approved")

        assert application.status == "approved"
        db_session.refresh(user)
        assert user.role == Role.SELLER.value
        assert user.seller_status == "approved"

        history = workflow.get_history(admin_ctx, ReviewSubject.SELLER_APPLICATION, submitted.id)
        assert [(h.from_state, h.to_state, h.actor_id) for h in history] == [("pending", "approved", admin.id)]

    def test_rejection_keeps_role(self, workflow, admin_ctx, submitted, user, user_ctx, db_session):
        application = workflow.decide_seller_application(admin_ctx, submitted.id, "rejected")

        assert application.status == "rejected"
        db_session.refresh(user)
        assert user.role == Role.USER.value
        assert user.seller_status == "rejected"

        # A rejected applicant applies again with a new application
        again = workflow.submit_seller_application(user_ctx, APPLICATION)
        assert again.id != submitted.id
        assert again.status == "pending"
        assert workflow.refresh(submitted).status == "rejected"

    @pytest.mark.parametrize("first,second", [("approved", "rejected"), ("rejected", "approved"), ("approved", "approved")])
    def test_decided_application_is_final(self, workflow, admin_ctx, submitted, first, second, db_session):
        workflow.decide_seller_application(admin_ctx, submitted.id, first)

        with pytest.raises(InvalidTransitionError) as exc_info:
            workflow.decide_seller_application(admin_ctx, submitted.id, second)

        assert exc_info.value.from_state == first
        assert workflow.refresh(submitted).status == first
        assert db_session.query(ReviewHistory).count() == 1

    @pytest.mark.parametrize("context_fixture", ["user_ctx", "seller_ctx"])
    def test_only_admins_decide(self, workflow, submitted, context_fixture, request):
        context = request.getfixturevalue(context_fixture)
        with pytest.raises(NotAuthorizedError):
            workflow.decide_seller_application(context, submitted.id, "approved")
        assert workflow.refresh(submitted).status == "pending"

    def test_unknown_application(self, workflow, admin_ctx):
        with pytest.raises(NotFoundError):
            workflow.decide_seller_application(admin_ctx, uuid.uuid4(), "approved")

    def test_unknown_decision(self, workflow, admin_ctx, submitted):
        with pytest.raises(ValidationError):
            workflow.decide_seller_application(admin_ctx, submitted.id, "maybe")


class TestConcurrentDecisions:

    def test_second_admin_loses_race(self, tmp_path):
        """Both admins read the application while pending; only one decision lands."""
        engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
        Base.metadata.create_all(engine)
        factory = sessionmaker(bind=engine, autoflush=False)

        with factory() as setup:
            first_admin = create_user(setup, role=Role.ADMIN)
            second_admin = create_user(setup, role=Role.ADMIN)
            applicant = create_user(setup, seller_status="pending")
            application = create_application(setup, user=applicant)
            ids = (first_admin.id, second_admin.id, applicant.id, application.id)
            setup.commit()
        first_id, second_id, applicant_id, application_id = ids

        session_a, session_b = factory(), factory()
        try:
            ctx_a = context_for(session_a.get(User, first_id))
            ctx_b = context_for(session_b.get(User, second_id))
            # Session A holds a stale pending copy from here on
            assert session_a.get(SellerApplication, application_id).status == "pending"

            WorkflowService(session_b).decide_seller_application(ctx_b, application_id, "approved")

            with pytest.raises(InvalidTransitionError) as exc_info:
                WorkflowService(session_a).decide_seller_application(ctx_a, application_id, "rejected")
            assert exc_info.value.from_state == "approved"
        finally:
            session_a.close()
            session_b.close()

        with factory() as check:
            assert check.get(SellerApplication, application_id).status == "approved"
            assert check.get(User, applicant_id).role == Role.SELLER.value
            history = check.query(ReviewHistory).filter(ReviewHistory.entity_id == application_id).all()
            assert [(h.to_state, h.actor_id) for h in history] == [("approved", second_id)]
        engine.dispose()


# ---------------------------------------------------------------------------
# Partial failure and retry
# ---------------------------------------------------------------------------


class TestPartialFailure:

    def test_missing_user_row_is_partial_failure(self, workflow, admin_ctx, db_session, caplog):
        orphan_id = uuid.uuid4()
        application = create_application(db_session, user_id=orphan_id)
        db_session.commit()

        with pytest.raises(PartialFailureError) as exc_info:
            workflow.decide_seller_application(admin_ctx, application.id, "approved")

        assert exc_info.value.application_id == application.id
        assert workflow.refresh(application).status == "approved"
        assert "PARTIAL_FAILURE" in caplog.text
        assert any(r.levelname == "ERROR" and "PARTIAL_FAILURE" in r.getMessage() for r in caplog.records)

        # The profile shows up later; the retry completes the promotion
        create_user(db_session, user_id=orphan_id, seller_status="pending")
        db_session.commit()
        user = workflow.complete_approval_side_effect(admin_ctx, application.id)
        assert user.role == Role.SELLER.value
        assert user.seller_status == "approved"

    def test_failing_user_update_is_partial_failure(self, workflow, admin_ctx, submitted, user, db_session, monkeypatch):
        real_execute = db_session.execute

        def failing_execute(statement, *args, **kwargs):
            if getattr(statement, "is_update", False) and statement.table.name == "users":
                raise OperationalError("UPDATE users", {}, Exception("database is locked"))
            return real_execute(statement, *args, **kwargs)

        monkeypatch.setattr(db_session, "execute", failing_execute)
        with pytest.raises(PartialFailureError):
            workflow.decide_seller_application(admin_ctx, submitted.id, "approved")
        monkeypatch.undo()

        assert workflow.refresh(submitted).status == "approved"
        db_session.refresh(user)
        assert user.role == Role.USER.value

        completed = workflow.complete_approval_side_effect(admin_ctx, submitted.id)
        assert completed.role == Role.SELLER.value

    def test_retry_is_idempotent(self, workflow, admin_ctx, submitted):
        workflow.decide_seller_application(admin_ctx, submitted.id, "rejected")
        first = workflow.complete_approval_side_effect(admin_ctx, submitted.id)
        second = workflow.complete_approval_side_effect(admin_ctx, submitted.id)
        assert first.seller_status == second.seller_status == "rejected"
        assert second.role == Role.USER.value

    def test_retry_on_pending_application(self, workflow, admin_ctx, submitted):
        with pytest.raises(InvalidTransitionError):
            workflow.complete_approval_side_effect(admin_ctx, submitted.id)

    def test_retry_needs_admin(self, workflow, user_ctx, submitted):
        with pytest.raises(NotAuthorizedError):
            workflow.complete_approval_side_effect(user_ctx, submitted.id)


# ---------------------------------------------------------------------------
# Reads and queues
# ---------------------------------------------------------------------------


class TestReads:

    def test_owner_and_admin_can_read(self, workflow, user_ctx, admin_ctx, submitted):
        assert workflow.get_seller_application(user_ctx, submitted.id).id == submitted.id
        assert workflow.get_seller_application(admin_ctx, submitted.id).id == submitted.id

    def test_other_users_cannot_read(self, workflow, submitted, db_session):
        stranger = context_for(create_user(db_session))
        with pytest.raises(NotAuthorizedError):
            workflow.get_seller_application(stranger, submitted.id)

    def test_list_own_newest_first(self, workflow, user, user_ctx, db_session):
        old = create_application(db_session, user=user, status="rejected", created_at=datetime(2024, 1, 1))
        new = create_application(db_session, user=user, created_at=datetime(2024, 6, 1))
        db_session.commit()
        assert [a.id for a in workflow.list_own_applications(user_ctx)] == [new.id, old.id]

    def test_pending_queue_newest_submission_first(self, workflow, admin_ctx, db_session):
        base = datetime(2024, 3, 1)
        created = [
            create_application(db_session, created_at=base + timedelta(hours=i)) for i in range(5)
        ]
        create_application(db_session, status="approved", created_at=base)
        db_session.commit()

        listing = workflow.list_by_status(admin_ctx, "seller_application", "pending", page_size=2)

        assert [a.id for a in listing] == [a.id for a in reversed(created)]
        assert listing.count() == 5
        assert [a.id for a in listing.page(2, 2)] == [created[2].id, created[1].id]

    def test_decided_queue_most_recent_decision_first(self, workflow, admin_ctx, db_session):
        early = create_application(db_session, status="approved", updated_at=datetime(2024, 1, 2))
        late = create_application(db_session, status="approved", updated_at=datetime(2024, 1, 5))
        db_session.commit()

        listing = workflow.list_by_status(admin_ctx, ReviewSubject.SELLER_APPLICATION, ReviewState.APPROVED)
        assert [a.id for a in listing] == [late.id, early.id]

    def test_listing_reflects_store_on_each_iteration(self, workflow, admin_ctx, db_session):
        listing = workflow.list_by_status(admin_ctx, "seller_application", "pending")
        assert list(listing) == []

        create_application(db_session)
        db_session.commit()
        assert len(list(listing)) == 1

    def test_queue_needs_admin(self, workflow, user_ctx):
        with pytest.raises(NotAuthorizedError):
            workflow.list_by_status(user_ctx, "seller_application", "pending")

    def test_unknown_status(self, workflow, admin_ctx):
        with pytest.raises(ValidationError):
            workflow.list_by_status(admin_ctx, "seller_application", "archived")
