"""Review workflow for seller applications and event requests.

Implements a shared state machine (pending -> approved | rejected) with
role checks, persisted decisions and an audit trail.
"""

from .states import (
    ReviewState,
    ReviewDecision,
    ReviewSubject,
    TransitionRule,
    TRANSITION_RULES,
    INITIAL_STATE,
    TERMINAL_STATES,
    can_transition,
    get_target_state,
)
from .machine import ReviewStateMachine
from .inputs import BusinessType, SellerApplicationInput, EventRequestInput, parse_input
from .listing import StatusListing
from .service import WorkflowService

__all__ = [
    "ReviewState",
    "ReviewDecision",
    "ReviewSubject",
    "TransitionRule",
    "TRANSITION_RULES",
    "INITIAL_STATE",
    "TERMINAL_STATES",
    "can_transition",
    "get_target_state",
    "ReviewStateMachine",
    "BusinessType",
    "SellerApplicationInput",
    "EventRequestInput",
    "parse_input",
    "StatusListing",
    "WorkflowService",
]
