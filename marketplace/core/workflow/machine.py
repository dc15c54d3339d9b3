"""Review state machine implementation.

Validates decisions against the transition table and the acting role, and
keeps an in-memory record of the transitions it performed.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional, Dict, Any, Callable
from uuid import UUID

from marketplace.core.access.checker import PermissionChecker
from marketplace.core.access.roles import Role
from marketplace.core.errors import InvalidTransitionError, NotAuthorizedError

from .states import (
    ReviewState,
    ReviewDecision,
    ReviewSubject,
    can_transition,
    get_transition_rule,
    TERMINAL_STATES,
)

logger = logging.getLogger(__name__)


class ReviewStateMachine:
    """
    State machine for a single reviewable entity.

    Manages decisions with:
    - Validation against the transition table
    - Role checking for protected transitions
    - A transition record per decision
    - Callback hooks for side effects
    """

    def __init__(
        self,
        subject: ReviewSubject,
        entity_id: UUID,
        current_state: ReviewState,
        *,
        actor_role: Optional[Role] = None,
    ):
        """
        Initialize the state machine.

        Args:
            subject: Kind of entity (seller application, event)
            entity_id: ID of the entity
            current_state: Current review state
            actor_role: Role of the acting user, None for an anonymous caller
        """
        self.subject = ReviewSubject(subject)
        self.entity_id = entity_id
        self._state = ReviewState(current_state)
        self.actor_role = Role(actor_role) if actor_role is not None else None
        self._transition_history: list[Dict[str, Any]] = []
        self._callbacks: Dict[ReviewDecision, list[Callable]] = {}

    @property
    def state(self) -> ReviewState:
        """Current state of the entity."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal (no further transitions)."""
        return self._state in TERMINAL_STATES

    def can_perform(self, decision: ReviewDecision) -> bool:
        """Check if a decision can be made from the current state by this actor."""
        if not can_transition(self.subject, self._state, decision):
            return False

        rule = get_transition_rule(self.subject, self._state, decision)
        if rule and rule.requires_permission:
            return self._has_permission(rule.requires_permission)
        return True

    def get_available_decisions(self) -> list[ReviewDecision]:
        """Get decisions available from the current state."""
        return [d for d in ReviewDecision if self.can_perform(d)]

    def transition(
        self,
        decision: ReviewDecision,
        *,
        actor_id: Optional[UUID] = None,
    ) -> ReviewState:
        """
        Apply a decision.

        Args:
            decision: The decision to apply
            actor_id: ID of the user deciding

        Returns:
            The new state

        Raises:
            InvalidTransitionError: If the entity is not in a state that accepts the decision
            NotAuthorizedError: If the actor's role lacks the required permission
        """
        decision = ReviewDecision(decision)

        if not can_transition(self.subject, self._state, decision):
            raise InvalidTransitionError(
                f"Cannot mark {self.subject.value} {decision.value}: it is already {self._state.value}",
                from_state=self._state.value,
                decision=decision.value,
            )

        rule = get_transition_rule(self.subject, self._state, decision)
        if rule.requires_permission and not self._has_permission(rule.requires_permission):
            raise NotAuthorizedError(rule.requires_permission)

        from_state = self._state
        record = {
            "id": uuid.uuid4(),
            "subject": self.subject.value,
            "entity_id": self.entity_id,
            "from_state": from_state.value,
            "to_state": rule.to_state.value,
            "decision": decision.value,
            "actor_id": actor_id,
            "timestamp": datetime.utcnow(),
        }
        self._transition_history.append(record)
        self._state = rule.to_state

        self._execute_callbacks(decision, record)
        return self._state

    def register_callback(
        self,
        decision: ReviewDecision,
        callback: Callable[[Dict[str, Any]], None],
    ) -> None:
        """Register a callback run with the transition record after a decision."""
        self._callbacks.setdefault(ReviewDecision(decision), []).append(callback)

    def get_history(self) -> list[Dict[str, Any]]:
        """Get the transitions performed by this machine."""
        return self._transition_history.copy()

    def _has_permission(self, permission: str) -> bool:
        if self.actor_role is None:
            return False
        return PermissionChecker(self.actor_role).has_permission(permission)

    def _execute_callbacks(self, decision: ReviewDecision, record: Dict[str, Any]) -> None:
        for callback in self._callbacks.get(decision, []):
            try:
                callback(record)
            except Exception:
                # Callbacks must not undo a decision that already happened
                logger.exception(
                    "Callback failed after %s %s on %s", self.subject.value, decision.value, self.entity_id
                )
