"""Proposal status state machine.

DRAFT → SUBMITTED → UNDER_REVIEW → ACCEPTED | REJECTED
                    UNDER_REVIEW ↔ REVISIONS_REQUESTED (revision loop)
DRAFT may also be deleted by its owner.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from app.core.errors import Forbidden, InvalidTransition, ValidationError
from app.models.proposal import ActorRole, ProposalStatus, TransitionRequest


class ProposalAction(str, Enum):
    """Mutations that are not status changes."""
    DELETE = "DELETE"
    EDIT = "EDIT"


@dataclass(frozen=True)
class TransitionRule:
    """One legal edge of the state machine."""
    source: ProposalStatus
    target: ProposalStatus
    role: ActorRole
    required_fields: tuple[str, ...] = ()
    checks_call_window: bool = False
    appends_revision: bool = False


@dataclass(frozen=True)
class ResolvedTransition:
    """A legal transition together with its validated payload."""
    rule: TransitionRule
    payload: dict[str, Optional[str]] = field(default_factory=dict)


S = ProposalStatus

VALID_TRANSITIONS: dict[ProposalStatus, list[TransitionRule]] = {
    S.DRAFT: [
        TransitionRule(S.DRAFT, S.SUBMITTED, ActorRole.RESEARCHER, checks_call_window=True),
    ],
    S.SUBMITTED: [
        TransitionRule(S.SUBMITTED, S.UNDER_REVIEW, ActorRole.ADMIN),
    ],
    S.UNDER_REVIEW: [
        TransitionRule(S.UNDER_REVIEW, S.ACCEPTED, ActorRole.ADMIN),
        TransitionRule(
            S.UNDER_REVIEW, S.REJECTED, ActorRole.ADMIN,
            required_fields=("rejection_reason",),
        ),
        TransitionRule(
            S.UNDER_REVIEW, S.REVISIONS_REQUESTED, ActorRole.ADMIN,
            required_fields=("revision_requirements",),
        ),
    ],
    S.REVISIONS_REQUESTED: [
        TransitionRule(
            S.REVISIONS_REQUESTED, S.UNDER_REVIEW, ActorRole.RESEARCHER,
            required_fields=("changes",),
            appends_revision=True,
        ),
    ],
    S.ACCEPTED: [],  # terminal
    S.REJECTED: [],  # terminal
}

TERMINAL_STATUSES = frozenset(s for s, rules in VALID_TRANSITIONS.items() if not rules)

_PAYLOAD_FIELDS = ("rejection_reason", "revision_requirements", "changes", "document_ref")


def find_rule(current: ProposalStatus, target: ProposalStatus) -> Optional[TransitionRule]:
    """Return the edge current → target, if one exists."""
    for rule in VALID_TRANSITIONS[current]:
        if rule.target is target:
            return rule
    return None


def allowed_targets(current: ProposalStatus, role: Optional[ActorRole] = None) -> list[ProposalStatus]:
    """Targets reachable from current, optionally limited to one role's edges."""
    return [
        rule.target
        for rule in VALID_TRANSITIONS[current]
        if role is None or rule.role is role
    ]


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_transition(
    current: ProposalStatus,
    request: TransitionRequest,
    role: ActorRole,
    proposal_id: Optional[str] = None,
) -> ResolvedTransition:
    """
    Look up the edge for a transition request and validate its payload.

    Raises:
        InvalidTransition: no current → request.to edge exists
        Forbidden: the edge exists but belongs to the other role
        ValidationError: a required payload field is missing or blank
    """
    rule = find_rule(current, request.to)
    if rule is None:
        raise InvalidTransition(
            f"Cannot transition proposal from '{current.value}' to '{request.to.value}'",
            operation="request_transition",
            proposal_id=proposal_id,
            details={
                "from": current.value,
                "to": request.to.value,
                "allowed": [t.value for t in allowed_targets(current)],
            },
        )

    if rule.role is not role:
        raise Forbidden(
            "Not authorized to perform this action on the proposal",
            operation="request_transition",
            proposal_id=proposal_id,
        )

    payload = {name: _clean(getattr(request, name)) for name in _PAYLOAD_FIELDS}
    missing = [name for name in rule.required_fields if not payload[name]]
    if missing:
        raise ValidationError(
            f"Missing required field(s) for {current.value} → {request.to.value}: {', '.join(missing)}",
            operation="request_transition",
            proposal_id=proposal_id,
            details={"missing_fields": missing},
        )

    return ResolvedTransition(rule=rule, payload=payload)
