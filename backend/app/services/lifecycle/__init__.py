"""Proposal lifecycle: state machine, authorization, revision ledger."""
from app.services.lifecycle.authorization import AuthorizationGate, Permit
from app.services.lifecycle.call_window import CallRegistry, CallWindowValidator
from app.services.lifecycle.ledger import RevisionHistory, RevisionLedger
from app.services.lifecycle.locks import ProposalLocks, get_proposal_locks
from app.services.lifecycle.service import ProposalService
from app.services.lifecycle.transitions import (
    VALID_TRANSITIONS,
    ProposalAction,
    TransitionRule,
    resolve_transition,
)

__all__ = [
    "AuthorizationGate",
    "Permit",
    "CallRegistry",
    "CallWindowValidator",
    "RevisionHistory",
    "RevisionLedger",
    "ProposalLocks",
    "get_proposal_locks",
    "ProposalService",
    "VALID_TRANSITIONS",
    "ProposalAction",
    "TransitionRule",
    "resolve_transition",
]
