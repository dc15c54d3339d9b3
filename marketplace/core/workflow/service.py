"""Workflow service for seller applications and event requests.

Persists review decisions through the state machine. A seller application
decision touches two rows: the application itself (write 1) and the owning
user's role/seller status (write 2). Write 1 is committed on its own so a
failing write 2 surfaces as ``PartialFailureError`` and can be completed
later with ``complete_approval_side_effect``.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.core.access.checker import PermissionChecker, require_permission
from marketplace.core.access.permissions import Permission, Resource, Action
from marketplace.core.access.roles import Role, SellerStatus
from marketplace.core.errors import (
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from marketplace.core.session import SessionContext
from marketplace.db.errors import store_errors
from marketplace.db.models import Event, ReviewHistory, SellerApplication, User

from .inputs import EventRequestInput, SellerApplicationInput, parse_input
from .listing import StatusListing
from .machine import ReviewStateMachine
from .states import (
    ReviewDecision,
    ReviewState,
    ReviewSubject,
    SELLER_STATUS_AFTER,
    get_transition_rule,
)

logger = logging.getLogger(__name__)

_MODELS = {
    ReviewSubject.SELLER_APPLICATION: SellerApplication,
    ReviewSubject.EVENT: Event,
}

_ENTITY_NAMES = {
    ReviewSubject.SELLER_APPLICATION: "Seller application",
    ReviewSubject.EVENT: "Event",
}

# Permission needed to see a review queue and its history
_REVIEW_PERMISSIONS = {
    ReviewSubject.SELLER_APPLICATION: str(Permission(Resource.SELLER_APPLICATIONS, Action.LIST)),
    ReviewSubject.EVENT: str(Permission(Resource.EVENTS, Action.APPROVE)),
}


def _parse_decision(decision: Union[str, ReviewDecision]) -> ReviewDecision:
    try:
        return ReviewDecision(decision)
    except ValueError:
        raise ValidationError(
            "Decision must be 'approved' or 'rejected'", fields={"decision": "Invalid decision"}
        ) from None


def _parse_state(status: Union[str, ReviewState]) -> ReviewState:
    try:
        return ReviewState(status)
    except ValueError:
        raise ValidationError(
            "Status must be one of pending, approved, rejected", fields={"status": "Invalid status"}
        ) from None


class WorkflowService:
    """
    Review workflow bound to a database session.

    Every operation takes the caller's ``SessionContext`` explicitly and
    returns the entity as it is after the operation.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Seller applications
    # ------------------------------------------------------------------

    def submit_seller_application(
        self,
        actor: SessionContext,
        fields: Union[SellerApplicationInput, Mapping[str, Any]],
    ) -> SellerApplication:
        """
        Submit an application to become a seller.

        Raises:
            NotAuthenticatedError: No session
            NotAuthorizedError: Caller is not a plain user
            ValidationError: Missing fields, or a pending application already exists
            NotFoundError: The caller's profile row no longer exists
        """
        require_permission(actor, Permission(Resource.SELLER_APPLICATIONS, Action.CREATE))
        data = parse_input(SellerApplicationInput, fields)

        with store_errors(self.db, "submit seller application"):
            # Not atomic: two concurrent submissions can both pass this check
            existing = (
                self.db.query(SellerApplication.id)
                .filter(
                    SellerApplication.user_id == actor.user_id,
                    SellerApplication.status == ReviewState.PENDING.value,
                )
                .first()
            )
            if existing:
                raise ValidationError(
                    "You already have a pending seller application",
                    fields={"business_name": "A pending application already exists"},
                )

            now = datetime.utcnow()
            application = SellerApplication(
                id=uuid.uuid4(),
                user_id=actor.user_id,
                business_name=data.business_name,
                business_type=data.business_type.value,
                website=data.website,
                experience=data.experience,
                event_types=data.event_types,
                status=ReviewState.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            self.db.add(application)
            result = self.db.execute(
                update(User)
                .where(User.id == actor.user_id)
                .values(seller_status=SellerStatus.PENDING.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Profile row vanished after the session was loaded
                self.db.rollback()
                raise NotFoundError("User", actor.user_id)
            self.db.commit()

        logger.info("Seller application %s submitted by %s", application.id, actor.user_id)
        return application

    def decide_seller_application(
        self,
        actor: SessionContext,
        application_id: UUID,
        decision: Union[str, ReviewDecision],
    ) -> SellerApplication:
        """
        Approve or reject a pending seller application.

        Approval promotes the applicant to seller; rejection only records
        the outcome on the applicant's seller status.

        Raises:
            NotFoundError: Unknown application
            InvalidTransitionError: Application was already decided
            PartialFailureError: Decision stored but the user update failed
        """
        decision = _parse_decision(decision)
        application = self._decide(actor, ReviewSubject.SELLER_APPLICATION, application_id, decision)
        self._apply_seller_outcome(application, ReviewState(application.status))
        return self.refresh(application)

    def complete_approval_side_effect(self, actor: SessionContext, application_id: UUID) -> User:
        """
        Re-apply the user update for an already decided application.

        Safe to call any number of times.

        Raises:
            NotFoundError: Unknown application
            InvalidTransitionError: Application is still pending
            PartialFailureError: The user row still cannot be updated
        """
        require_permission(actor, Permission(Resource.SELLER_APPLICATIONS, Action.APPROVE))
        application = self._load(ReviewSubject.SELLER_APPLICATION, application_id)

        state = ReviewState(application.status)
        if state not in SELLER_STATUS_AFTER:
            raise InvalidTransitionError(
                "Application has not been decided yet", from_state=state.value
            )

        self._apply_seller_outcome(application, state)
        with store_errors(self.db, "load applicant"):
            user = self.db.get(User, application.user_id, populate_existing=True)
        if user is None:
            raise NotFoundError("User", application.user_id)
        return user

    def get_seller_application(self, actor: SessionContext, application_id: UUID) -> SellerApplication:
        """Get an application. Applicants may only see their own."""
        role = require_permission(actor, Permission(Resource.SELLER_APPLICATIONS, Action.READ))
        application = self._load(ReviewSubject.SELLER_APPLICATION, application_id)
        if application.user_id != actor.user_id and not self._can_review(role, ReviewSubject.SELLER_APPLICATION):
            raise NotAuthorizedError()
        return application

    def list_own_applications(self, actor: SessionContext) -> list[SellerApplication]:
        """The caller's applications, newest first."""
        require_permission(actor, Permission(Resource.SELLER_APPLICATIONS, Action.READ))
        with store_errors(self.db, "list own applications"):
            return (
                self.db.query(SellerApplication)
                .filter(SellerApplication.user_id == actor.user_id)
                .order_by(SellerApplication.created_at.desc())
                .all()
            )

    # ------------------------------------------------------------------
    # Event requests
    # ------------------------------------------------------------------

    def submit_event_request(
        self,
        actor: SessionContext,
        fields: Union[EventRequestInput, Mapping[str, Any]],
    ) -> Event:
        """
        Submit an event for admin approval.

        Raises:
            NotAuthenticatedError: No session
            NotAuthorizedError: Caller is neither seller nor admin
            ValidationError: Missing, non-numeric or negative values
        """
        require_permission(actor, Permission(Resource.EVENTS, Action.CREATE))
        data = parse_input(EventRequestInput, fields)

        now = datetime.utcnow()
        event = Event(
            id=uuid.uuid4(),
            title=data.title,
            description=data.description,
            date=data.date,
            time=data.time,
            location=data.location,
            price=data.price,
            capacity=data.capacity,
            category=data.category,
            image_url=data.image_url,
            organizer_id=actor.user_id,
            status=ReviewState.PENDING.value,
            reviewed_by=None,
            reviewed_at=None,
            created_at=now,
            updated_at=now,
        )
        with store_errors(self.db, "submit event request"):
            self.db.add(event)
            self.db.commit()

        logger.info("Event request %s submitted by %s", event.id, actor.user_id)
        return event

    def decide_event_request(
        self,
        actor: SessionContext,
        event_id: UUID,
        decision: Union[str, ReviewDecision],
    ) -> Event:
        """
        Approve or reject a pending event request.

        Records the deciding admin and decision time on the event.

        Raises:
            NotFoundError: Unknown event
            InvalidTransitionError: Event was already decided
        """
        decision = _parse_decision(decision)
        event = self._decide(actor, ReviewSubject.EVENT, event_id, decision)
        return self.refresh(event)

    def get_event_request(self, actor: SessionContext, event_id: UUID) -> Event:
        """Get an event in any state. Organizers may only see their own."""
        role = require_permission(actor, Permission(Resource.EVENTS, Action.READ))
        event = self._load(ReviewSubject.EVENT, event_id)
        if event.organizer_id != actor.user_id and not self._can_review(role, ReviewSubject.EVENT):
            raise NotAuthorizedError()
        return event

    # ------------------------------------------------------------------
    # Review queues
    # ------------------------------------------------------------------

    def list_by_status(
        self,
        actor: SessionContext,
        subject: Union[str, ReviewSubject],
        status: Union[str, ReviewState],
        page_size: int = 50,
    ) -> StatusListing:
        """
        Lazy listing of entities in ``status``.

        Pending entities are ordered by submission time, decided ones by
        decision time, newest first.
        """
        subject = ReviewSubject(subject)
        require_permission(actor, _REVIEW_PERMISSIONS[subject])
        return StatusListing(self.db, _MODELS[subject], _parse_state(status), page_size=page_size)

    def get_history(
        self,
        actor: SessionContext,
        subject: Union[str, ReviewSubject],
        entity_id: UUID,
    ) -> list[ReviewHistory]:
        """Decision history for one entity, oldest first."""
        subject = ReviewSubject(subject)
        require_permission(actor, _REVIEW_PERMISSIONS[subject])
        with store_errors(self.db, "load review history"):
            return (
                self.db.query(ReviewHistory)
                .filter(
                    ReviewHistory.subject == subject.value,
                    ReviewHistory.entity_id == entity_id,
                )
                .order_by(ReviewHistory.created_at.asc())
                .all()
            )

    def refresh(self, entity):
        """Re-read ``entity`` from the store."""
        model = type(entity)
        with store_errors(self.db, f"refresh {model.__name__}"):
            fresh = self.db.get(model, entity.id, populate_existing=True)
        if fresh is None:
            raise NotFoundError(model.__name__, entity.id)
        return fresh

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decide(
        self,
        actor: SessionContext,
        subject: ReviewSubject,
        entity_id: UUID,
        decision: ReviewDecision,
    ):
        """Write 1: move the entity out of pending and record the decision."""
        rule = get_transition_rule(subject, ReviewState.PENDING, decision)
        role = require_permission(actor, rule.requires_permission)

        model = _MODELS[subject]
        entity = self._load(subject, entity_id)

        machine = ReviewStateMachine(subject, entity.id, ReviewState(entity.status), actor_role=role)
        new_state = machine.transition(decision, actor_id=actor.user_id)

        now = datetime.utcnow()
        values: Dict[str, Any] = {"status": new_state.value, "updated_at": now}
        if subject == ReviewSubject.EVENT:
            values.update(reviewed_by=actor.user_id, reviewed_at=now)

        with store_errors(self.db, f"decide {subject.value}"):
            result = self.db.execute(
                update(model)
                .where(model.id == entity.id, model.status == ReviewState.PENDING.value)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Another decision was committed after this entity was read
                self.db.rollback()
                current = self.db.query(model.status).filter(model.id == entity.id).scalar()
                raise InvalidTransitionError(
                    f"Cannot mark {subject.value} {decision.value}: it is already {current}",
                    from_state=current,
                    decision=decision.value,
                )

            for record in machine.get_history():
                self.db.add(ReviewHistory(
                    id=record["id"],
                    subject=record["subject"],
                    entity_id=record["entity_id"],
                    from_state=record["from_state"],
                    to_state=record["to_state"],
                    decision=record["decision"],
                    actor_id=record["actor_id"],
                    created_at=now,
                ))
            self.db.commit()

        for record in machine.get_history():
            self._log_decision(record)
        return self.refresh(entity)

    def _apply_seller_outcome(self, application: SellerApplication, state: ReviewState) -> None:
        """Write 2: reflect a decided application on the owning user."""
        values: Dict[str, Any] = {
            "seller_status": SELLER_STATUS_AFTER[state].value,
            "updated_at": datetime.utcnow(),
        }
        if state == ReviewState.APPROVED:
            values["role"] = Role.SELLER.value

        application_id = application.id
        user_id = application.user_id
        try:
            result = self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise LookupError(f"no user row {user_id}")
            self.db.commit()
        except (SQLAlchemyError, LookupError) as exc:
            self.db.rollback()
            logger.error(
                "PARTIAL_FAILURE: seller application %s marked %s but user %s was not updated: %s",
                application_id, state.value, user_id, exc,
            )
            raise PartialFailureError(application_id, state.value) from exc

        logger.info("User %s seller status set to %s", user_id, values["seller_status"])

    def _load(self, subject: ReviewSubject, entity_id: UUID):
        with store_errors(self.db, f"load {subject.value}"):
            entity = self.db.get(_MODELS[subject], entity_id)
        if entity is None:
            raise NotFoundError(_ENTITY_NAMES[subject], entity_id)
        return entity

    @staticmethod
    def _can_review(role: Optional[Role], subject: ReviewSubject) -> bool:
        return role is not None and PermissionChecker(role).has_permission(_REVIEW_PERMISSIONS[subject])

    @staticmethod
    def _log_decision(record: Dict[str, Any]) -> None:
        logger.info(
            "%s %s: %s -> %s by %s",
            record["subject"], record["entity_id"], record["from_state"], record["to_state"], record["actor_id"],
        )

