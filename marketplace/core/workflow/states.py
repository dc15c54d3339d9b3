"""Review workflow states and transitions.

Shared shape for seller applications and event requests:

    ┌──────────┐
    │ PENDING  │ ← Initial state (submitted)
    └────┬─────┘
         │  admin decision
         ├─────────────────────┐
         │                     │
    ┌────▼─────┐         ┌─────▼────┐
    │ APPROVED │         │ REJECTED │
    └──────────┘         └──────────┘

Both decided states are terminal. Applying again means submitting a new
entity, never moving an old one back to PENDING.
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple

from marketplace.core.access.permissions import Permission, Resource, Action
from marketplace.core.access.roles import SellerStatus


class ReviewState(str, Enum):
    """States of a reviewable entity."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(str, Enum):
    """Admin decisions. Values match the target states."""

    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewSubject(str, Enum):
    """Kinds of entity that go through review."""

    SELLER_APPLICATION = "seller_application"
    EVENT = "event"


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    subject: ReviewSubject
    from_state: ReviewState
    to_state: ReviewState
    decision: ReviewDecision
    requires_permission: Optional[str] = None


def _perm(resource: Resource, action: Action) -> str:
    return str(Permission(resource, action))


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(ReviewSubject.SELLER_APPLICATION, ReviewState.PENDING, ReviewState.APPROVED,
                   ReviewDecision.APPROVED, _perm(Resource.SELLER_APPLICATIONS, Action.APPROVE)),
    TransitionRule(ReviewSubject.SELLER_APPLICATION, ReviewState.PENDING, ReviewState.REJECTED,
                   ReviewDecision.REJECTED, _perm(Resource.SELLER_APPLICATIONS, Action.REJECT)),
    TransitionRule(ReviewSubject.EVENT, ReviewState.PENDING, ReviewState.APPROVED,
                   ReviewDecision.APPROVED, _perm(Resource.EVENTS, Action.APPROVE)),
    TransitionRule(ReviewSubject.EVENT, ReviewState.PENDING, ReviewState.REJECTED,
                   ReviewDecision.REJECTED, _perm(Resource.EVENTS, Action.REJECT)),
]

# Lookup tables
VALID_TRANSITIONS: Dict[tuple[ReviewSubject, ReviewState], Set[ReviewDecision]] = {}
TRANSITION_TARGETS: Dict[tuple[ReviewSubject, ReviewState, ReviewDecision], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault((rule.subject, rule.from_state), set()).add(rule.decision)
    TRANSITION_TARGETS[(rule.subject, rule.from_state, rule.decision)] = rule


INITIAL_STATE = ReviewState.PENDING

TERMINAL_STATES: Set[ReviewState] = {
    ReviewState.APPROVED,
    ReviewState.REJECTED,
}

# Seller status written to the applicant once their application is decided
SELLER_STATUS_AFTER: Dict[ReviewState, SellerStatus] = {
    ReviewState.APPROVED: SellerStatus.APPROVED,
    ReviewState.REJECTED: SellerStatus.REJECTED,
}


def can_transition(subject: ReviewSubject, from_state: ReviewState, decision: ReviewDecision) -> bool:
    """Check if a decision is valid from the given state."""
    return decision in VALID_TRANSITIONS.get((subject, from_state), set())


def get_transition_rule(
    subject: ReviewSubject, from_state: ReviewState, decision: ReviewDecision
) -> Optional[TransitionRule]:
    """Get the transition rule for a subject/state/decision combination."""
    return TRANSITION_TARGETS.get((subject, from_state, decision))


def get_target_state(
    subject: ReviewSubject, from_state: ReviewState, decision: ReviewDecision
) -> Optional[ReviewState]:
    """Get the target state for a decision, or None if it is not allowed."""
    rule = get_transition_rule(subject, from_state, decision)
    return rule.to_state if rule else None
