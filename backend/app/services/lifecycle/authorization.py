"""Single authorization gate for proposal mutations and reads."""
from dataclasses import dataclass
from typing import Union

from app.core.errors import Forbidden
from app.models.proposal import Actor, ActorRole, Proposal, ProposalStatus
from app.services.lifecycle.transitions import ProposalAction

Action = Union[ProposalStatus, ProposalAction]

# Targets each role may ever request; the edge itself is checked by the transition table.
ROLE_ACTIONS: dict[ActorRole, frozenset] = {
    ActorRole.ADMIN: frozenset({
        ProposalStatus.UNDER_REVIEW,
        ProposalStatus.ACCEPTED,
        ProposalStatus.REJECTED,
        ProposalStatus.REVISIONS_REQUESTED,
    }),
    ActorRole.RESEARCHER: frozenset({
        ProposalStatus.SUBMITTED,
        ProposalStatus.UNDER_REVIEW,  # via revision submission
        ProposalAction.DELETE,
        ProposalAction.EDIT,
    }),
}

FORBIDDEN_MESSAGE = "Not authorized to perform this action on the proposal"


@dataclass(frozen=True)
class Permit:
    """Proof that an actor may request an action on a proposal."""
    actor: Actor
    proposal_id: str
    action: Action


class AuthorizationGate:
    """
    Maps an actor's role and ownership to the actions they may request.

    Researchers are checked for ownership before anything else, and every
    refusal carries the same message and no details, so a non-owner cannot
    tell whether the action would have been legal for the owner.
    """

    def authorize(self, actor: Actor, proposal: Proposal, action: Action) -> Permit:
        if actor.role is ActorRole.RESEARCHER and not proposal.is_owned_by(actor):
            raise self._forbidden(proposal, "authorize")

        if action not in ROLE_ACTIONS[actor.role]:
            raise self._forbidden(proposal, "authorize")

        return Permit(actor=actor, proposal_id=proposal.id, action=action)

    def authorize_read(self, actor: Actor, proposal: Proposal) -> None:
        """Owners and admins may read a proposal and its history."""
        if actor.is_admin or proposal.is_owned_by(actor):
            return
        raise self._forbidden(proposal, "read")

    def authorize_create(self, actor: Actor) -> None:
        if actor.role is not ActorRole.RESEARCHER:
            raise Forbidden("Only researchers may create proposals", operation="create")

    def authorize_admin(self, actor: Actor, operation: str) -> None:
        if not actor.is_admin:
            raise Forbidden("Administrator role required", operation=operation)

    @staticmethod
    def _forbidden(proposal: Proposal, operation: str) -> Forbidden:
        return Forbidden(FORBIDDEN_MESSAGE, operation=operation, proposal_id=proposal.id)
