"""Tests for the review transition table."""

import pytest

from marketplace.core.workflow.states import (
    INITIAL_STATE,
    SELLER_STATUS_AFTER,
    TERMINAL_STATES,
    TRANSITION_RULES,
    ReviewDecision,
    ReviewState,
    ReviewSubject,
    can_transition,
    get_target_state,
    get_transition_rule,
)
from marketplace.core.access.roles import SellerStatus


class TestTransitionTable:

    def test_initial_state_is_pending(self):
        assert INITIAL_STATE == ReviewState.PENDING

    def test_decided_states_are_terminal(self):
        assert TERMINAL_STATES == {ReviewState.APPROVED, ReviewState.REJECTED}

    @pytest.mark.parametrize("subject", list(ReviewSubject))
    @pytest.mark.parametrize("decision", list(ReviewDecision))
    def test_pending_accepts_both_decisions(self, subject, decision):
        assert can_transition(subject, ReviewState.PENDING, decision)
        assert get_target_state(subject, ReviewState.PENDING, decision) == ReviewState(decision.value)

    @pytest.mark.parametrize("subject", list(ReviewSubject))
    @pytest.mark.parametrize("state", [ReviewState.APPROVED, ReviewState.REJECTED])
    @pytest.mark.parametrize("decision", list(ReviewDecision))
    def test_no_transition_leaves_a_decided_state(self, subject, state, decision):
        assert not can_transition(subject, state, decision)
        assert get_target_state(subject, state, decision) is None
        assert get_transition_rule(subject, state, decision) is None

    def test_every_rule_starts_from_pending(self):
        assert all(rule.from_state == ReviewState.PENDING for rule in TRANSITION_RULES)
        assert len(TRANSITION_RULES) == 4

    def test_rules_require_subject_specific_permissions(self):
        rule = get_transition_rule(ReviewSubject.SELLER_APPLICATION, ReviewState.PENDING, ReviewDecision.APPROVED)
        assert rule.requires_permission == "seller_applications:approve"
        rule = get_transition_rule(ReviewSubject.EVENT, ReviewState.PENDING, ReviewDecision.REJECTED)
        assert rule.requires_permission == "events:reject"


def test_seller_status_follows_application_outcome():
    assert SELLER_STATUS_AFTER[ReviewState.APPROVED] == SellerStatus.APPROVED
    assert SELLER_STATUS_AFTER[ReviewState.REJECTED] == SellerStatus.REJECTED
    assert ReviewState.PENDING not in SELLER_STATUS_AFTER
