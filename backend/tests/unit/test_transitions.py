"""
상태 전이 테이블 단위 테스트.

resolve_transition이 (현재 상태, 목표 상태, 역할) 조합마다
InvalidTransition / Forbidden / ValidationError 중 올바른 결과를 내는지 확인합니다.
"""
import itertools

import pytest

from app.core.errors import Forbidden, InvalidTransition, ValidationError
from app.models.proposal import ActorRole, ProposalStatus, TransitionRequest
from app.services.lifecycle.transitions import (
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    allowed_targets,
    find_rule,
    resolve_transition,
)

S = ProposalStatus

# Payload that satisfies every edge's required fields
FULL_PAYLOAD = {
    "rejection_reason": "Out of scope for this call",
    "revision_requirements": "Clarify the data management plan",
    "changes": "Rewrote section 3",
}

EXPECTED_EDGES = {
    (S.DRAFT, S.SUBMITTED, ActorRole.RESEARCHER),
    (S.SUBMITTED, S.UNDER_REVIEW, ActorRole.ADMIN),
    (S.UNDER_REVIEW, S.ACCEPTED, ActorRole.ADMIN),
    (S.UNDER_REVIEW, S.REJECTED, ActorRole.ADMIN),
    (S.UNDER_REVIEW, S.REVISIONS_REQUESTED, ActorRole.ADMIN),
    (S.REVISIONS_REQUESTED, S.UNDER_REVIEW, ActorRole.RESEARCHER),
}


class TestTransitionTable:
    """VALID_TRANSITIONS 구조 테스트."""

    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(ProposalStatus)

    def test_edges_match_lifecycle(self):
        edges = {
            (rule.source, rule.target, rule.role)
            for rules in VALID_TRANSITIONS.values()
            for rule in rules
        }
        assert edges == EXPECTED_EDGES

    def test_rules_are_keyed_by_their_source(self):
        for source, rules in VALID_TRANSITIONS.items():
            assert all(rule.source is source for rule in rules)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {S.ACCEPTED, S.REJECTED}

    def test_find_rule_missing_edge(self):
        assert find_rule(S.DRAFT, S.ACCEPTED) is None
        assert find_rule(S.ACCEPTED, S.UNDER_REVIEW) is None

    def test_allowed_targets_by_role(self):
        assert set(allowed_targets(S.UNDER_REVIEW)) == {S.ACCEPTED, S.REJECTED, S.REVISIONS_REQUESTED}
        assert allowed_targets(S.UNDER_REVIEW, ActorRole.RESEARCHER) == []
        assert allowed_targets(S.REVISIONS_REQUESTED, ActorRole.RESEARCHER) == [S.UNDER_REVIEW]

    def test_only_revision_edge_appends_revision(self):
        appending = [
            rule for rules in VALID_TRANSITIONS.values() for rule in rules if rule.appends_revision
        ]
        assert [(r.source, r.target) for r in appending] == [(S.REVISIONS_REQUESTED, S.UNDER_REVIEW)]

    def test_only_submission_checks_call_window(self):
        checking = [
            rule for rules in VALID_TRANSITIONS.values() for rule in rules if rule.checks_call_window
        ]
        assert [(r.source, r.target) for r in checking] == [(S.DRAFT, S.SUBMITTED)]


class TestResolveTransition:
    """resolve_transition 테스트."""

    @pytest.mark.parametrize(
        "current,target,role",
        list(itertools.product(ProposalStatus, ProposalStatus, ActorRole)),
    )
    def test_outcome_matches_table(self, current, target, role):
        """모든 (from, to, role) 조합의 결과가 전이 테이블과 일치."""
        request = TransitionRequest(to=target, **FULL_PAYLOAD)
        has_edge = any(
            (current, target) == (src, dst) for src, dst, _ in EXPECTED_EDGES
        )

        if not has_edge:
            with pytest.raises(InvalidTransition):
                resolve_transition(current, request, role)
        elif (current, target, role) not in EXPECTED_EDGES:
            with pytest.raises(Forbidden):
                resolve_transition(current, request, role)
        else:
            resolved = resolve_transition(current, request, role)
            assert resolved.rule.target is target

    @pytest.mark.parametrize("terminal", [S.ACCEPTED, S.REJECTED])
    @pytest.mark.parametrize("target", list(ProposalStatus))
    def test_terminal_states_have_no_exit(self, terminal, target):
        with pytest.raises(InvalidTransition) as exc_info:
            resolve_transition(terminal, TransitionRequest(to=target), ActorRole.ADMIN)
        assert exc_info.value.details["allowed"] == []

    def test_invalid_transition_details(self):
        with pytest.raises(InvalidTransition) as exc_info:
            resolve_transition(S.DRAFT, TransitionRequest(to=S.ACCEPTED), ActorRole.ADMIN, "p-1")

        error = exc_info.value
        assert error.proposal_id == "p-1"
        assert error.details == {"from": "DRAFT", "to": "ACCEPTED", "allowed": ["SUBMITTED"]}

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_rejection_requires_reason(self, reason):
        request = TransitionRequest(to=S.REJECTED, rejection_reason=reason)
        with pytest.raises(ValidationError) as exc_info:
            resolve_transition(S.UNDER_REVIEW, request, ActorRole.ADMIN)
        assert exc_info.value.details["missing_fields"] == ["rejection_reason"]

    def test_revision_request_requires_requirements(self):
        request = TransitionRequest(to=S.REVISIONS_REQUESTED, revision_requirements="  ")
        with pytest.raises(ValidationError) as exc_info:
            resolve_transition(S.UNDER_REVIEW, request, ActorRole.ADMIN)
        assert exc_info.value.details["missing_fields"] == ["revision_requirements"]

    def test_revision_requires_changes(self):
        request = TransitionRequest(to=S.UNDER_REVIEW)
        with pytest.raises(ValidationError):
            resolve_transition(S.REVISIONS_REQUESTED, request, ActorRole.RESEARCHER)

    def test_payload_is_stripped(self):
        request = TransitionRequest(
            to=S.REJECTED,
            rejection_reason="  Budget not justified  ",
            document_ref="   ",
        )
        resolved = resolve_transition(S.UNDER_REVIEW, request, ActorRole.ADMIN)

        assert resolved.payload["rejection_reason"] == "Budget not justified"
        assert resolved.payload["document_ref"] is None

    def test_forbidden_has_no_details(self):
        """역할이 맞지 않는 전이는 상세 정보 없이 거부."""
        with pytest.raises(Forbidden) as exc_info:
            resolve_transition(S.SUBMITTED, TransitionRequest(to=S.UNDER_REVIEW), ActorRole.RESEARCHER)
        assert exc_info.value.details == {}
