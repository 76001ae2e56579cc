"""Proposal aggregate: the only place proposal status is mutated."""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, StaleState, ValidationError, WrongState
from app.core.logging import get_logger
from app.db.repositories.call import CallRepository
from app.db.repositories.proposal import ProposalRepository
from app.db.repositories.revision import RevisionRepository
from app.db.repositories.status_change import StatusChangeRepository
from app.models.proposal import (
    Actor,
    Proposal,
    ProposalCreate,
    ProposalDetail,
    ProposalStats,
    ProposalStatus,
    ProposalUpdate,
    RevisionCreate,
    StatusChange,
    TransitionRequest,
)
from app.services.lifecycle.authorization import AuthorizationGate
from app.services.lifecycle.call_window import CallRegistry, CallWindowValidator
from app.services.lifecycle.ledger import RevisionHistory, RevisionLedger
from app.services.lifecycle.locks import ProposalLocks, get_proposal_locks
from app.services.lifecycle.transitions import ProposalAction, ResolvedTransition, resolve_transition
from app.services.notifications import Notifier, ProposalEvent, get_notifier, schedule_event

logger = get_logger(__name__)


def _require_text(value: Optional[str], field: str, operation: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(
            f"{field} must not be empty",
            operation=operation,
            details={"field": field},
        )
    return cleaned


class ProposalService:
    """
    Proposal lifecycle operations.

    Every mutation runs under the proposal's lock and inside one session
    transaction: read, authorize, check the transition table, write with a
    version compare-and-set, commit. Notifications are scheduled after the
    commit and delivered in the background.
    Errors are raised to the caller as-is and never retried here.
    """

    def __init__(
        self,
        db: AsyncSession,
        call_registry: Optional[CallRegistry] = None,
        notifier: Optional[Notifier] = None,
        locks: Optional[ProposalLocks] = None,
        gate: Optional[AuthorizationGate] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._db = db
        self._proposals = ProposalRepository(db)
        self._history = StatusChangeRepository(db)
        self._ledger = RevisionLedger(RevisionRepository(db), clock=clock)
        self._calls = call_registry or CallRepository(db)
        self._call_window = CallWindowValidator(clock=clock)
        self._notifier = notifier or get_notifier()
        self._locks = locks or get_proposal_locks()
        self._gate = gate or AuthorizationGate()
        self._clock = clock

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, actor: Actor, data: ProposalCreate) -> Proposal:
        """Create a DRAFT proposal owned by the researcher."""
        self._gate.authorize_create(actor)
        title = _require_text(data.title, "title", "create")
        abstract = _require_text(data.abstract, "abstract", "create")

        now = self._clock()
        proposal = Proposal(
            id=str(uuid.uuid4()),
            researcher_id=actor.id,
            call_id=data.call_id,
            title=title,
            abstract=abstract,
            budget=data.budget,
            document_ref=data.document_ref,
            status=ProposalStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )

        async with self._transaction():
            call = await self._calls.get_call(data.call_id)
            self._call_window.check_accepting(call, data.call_id)
            created = await self._proposals.create(proposal)
            await self._record_change(created.id, None, ProposalStatus.DRAFT, actor, None)

        logger.info(
            "proposal_created",
            proposal_id=created.id,
            researcher_id=actor.id,
            call_id=created.call_id,
        )
        return created

    async def request_transition(
        self,
        actor: Actor,
        proposal_id: str,
        request: TransitionRequest,
    ) -> Proposal:
        """
        Move a proposal to request.to.

        Raises:
            NotFound, Forbidden, StaleState, InvalidTransition,
            ValidationError, WrongState
        """
        observed = await self._observed_version(proposal_id, request.expected_status, request.expected_version)
        async with self._locks.hold(proposal_id):
            async with self._transaction():
                proposal = await self._load(proposal_id, "request_transition")
                self._gate.authorize(actor, proposal, request.to)
                self._check_fresh(proposal, request.expected_status, observed, "request_transition")
                resolved = resolve_transition(proposal.status, request, actor.role, proposal.id)
                updated = await self._apply(actor, proposal, resolved, "request_transition")

        logger.info(
            "proposal_transitioned",
            proposal_id=proposal_id,
            from_status=proposal.status.value,
            to_status=updated.status.value,
            actor_id=actor.id,
            version=updated.version,
        )
        schedule_event(
            self._notifier,
            ProposalEvent(proposal_id=proposal_id, new_status=updated.status, actor_id=actor.id),
        )
        return updated

    async def submit_revision(
        self,
        actor: Actor,
        proposal_id: str,
        data: RevisionCreate,
    ) -> Proposal:
        """
        Researcher response to REVISIONS_REQUESTED.

        Appends a revision record and moves the proposal back to
        UNDER_REVIEW in a single commit.
        """
        request = TransitionRequest(
            to=ProposalStatus.UNDER_REVIEW,
            expected_version=data.expected_version,
            changes=data.changes,
            document_ref=data.document_ref,
        )
        observed = await self._observed_version(proposal_id, None, data.expected_version)
        async with self._locks.hold(proposal_id):
            async with self._transaction():
                proposal = await self._load(proposal_id, "submit_revision")
                self._gate.authorize(actor, proposal, request.to)
                self._check_fresh(proposal, None, observed, "submit_revision")
                self._ledger.check_open(proposal)
                resolved = resolve_transition(proposal.status, request, actor.role, proposal.id)
                updated = await self._apply(actor, proposal, resolved, "submit_revision")

        logger.info(
            "revision_submitted",
            proposal_id=proposal_id,
            actor_id=actor.id,
            version=updated.version,
        )
        schedule_event(
            self._notifier,
            ProposalEvent(proposal_id=proposal_id, new_status=updated.status, actor_id=actor.id),
        )
        return updated

    async def update_draft(
        self,
        actor: Actor,
        proposal_id: str,
        data: ProposalUpdate,
        expected_version: Optional[int] = None,
    ) -> Proposal:
        """Edit title, abstract, budget or document of a DRAFT proposal."""
        observed = await self._observed_version(proposal_id, None, expected_version)
        async with self._locks.hold(proposal_id):
            async with self._transaction():
                proposal = await self._load(proposal_id, "update_draft")
                self._gate.authorize(actor, proposal, ProposalAction.EDIT)
                self._require_draft(proposal, "update_draft")
                self._check_fresh(proposal, None, observed, "update_draft")

                values: Dict[str, Any] = {}
                if data.title is not None:
                    values["title"] = _require_text(data.title, "title", "update_draft")
                if data.abstract is not None:
                    values["abstract"] = _require_text(data.abstract, "abstract", "update_draft")
                if data.budget is not None:
                    values["budget"] = data.budget
                if data.document_ref is not None:
                    values["document_ref"] = data.document_ref.strip() or None
                if not values:
                    return proposal

                updated = await self._proposals.compare_and_set(proposal.id, proposal.version, values)
                if updated is None:
                    raise self._stale(proposal, "update_draft")

        logger.info("proposal_updated", proposal_id=proposal_id, fields=sorted(values))
        return updated

    async def delete(
        self,
        actor: Actor,
        proposal_id: str,
        expected_version: Optional[int] = None,
    ) -> None:
        """Delete a DRAFT proposal. Only its owner may do this."""
        observed = await self._observed_version(proposal_id, None, expected_version)
        async with self._locks.hold(proposal_id):
            async with self._transaction():
                proposal = await self._load(proposal_id, "delete")
                self._gate.authorize(actor, proposal, ProposalAction.DELETE)
                self._require_draft(proposal, "delete")
                self._check_fresh(proposal, None, observed, "delete")
                if not await self._proposals.delete(proposal.id, proposal.version):
                    raise self._stale(proposal, "delete")

        logger.info("proposal_deleted", proposal_id=proposal_id, actor_id=actor.id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, actor: Actor, proposal_id: str) -> ProposalDetail:
        proposal = await self._load(proposal_id, "get")
        self._gate.authorize_read(actor, proposal)
        revisions = await self._ledger.list(proposal_id).all()
        return ProposalDetail(**proposal.model_dump(), revisions=revisions)

    async def list_for(
        self,
        actor: Actor,
        status: Optional[ProposalStatus] = None,
    ) -> List[Proposal]:
        """Researchers see their own proposals; admins see all of them."""
        researcher_id = None if actor.is_admin else actor.id
        return await self._proposals.list(researcher_id=researcher_id, status=status)

    async def list_revisions(self, actor: Actor, proposal_id: str) -> RevisionHistory:
        proposal = await self._load(proposal_id, "list_revisions")
        self._gate.authorize_read(actor, proposal)
        return self._ledger.list(proposal_id)

    async def history(self, actor: Actor, proposal_id: str) -> List[StatusChange]:
        proposal = await self._load(proposal_id, "history")
        self._gate.authorize_read(actor, proposal)
        return await self._history.list_by_proposal(proposal_id)

    async def stats(self, actor: Actor) -> ProposalStats:
        self._gate.authorize_admin(actor, "stats")
        by_status = await self._proposals.count_by_status()
        calls_count = await CallRepository(self._db).count()
        return ProposalStats(
            proposals_count=sum(by_status.values()),
            calls_count=calls_count,
            by_status=by_status,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

    async def _observed_version(
        self,
        proposal_id: str,
        expected_status: Optional[ProposalStatus],
        expected_version: Optional[int],
    ) -> Optional[int]:
        """
        Version the caller is acting on.

        Without an explicit expectation this is the version read before the
        lock is taken, so a writer that commits while this request waits for
        the lock surfaces as StaleState instead of a transition from a status
        the caller never saw.
        """
        if expected_status is not None or expected_version is not None:
            return expected_version
        proposal = await self._proposals.get_by_id(proposal_id)
        return proposal.version if proposal is not None else None

    async def _load(self, proposal_id: str, operation: str) -> Proposal:
        proposal = await self._proposals.get_by_id(proposal_id)
        if proposal is None:
            raise NotFound(
                "Proposal not found",
                operation=operation,
                proposal_id=proposal_id,
                details={"proposal_id": proposal_id},
            )
        return proposal

    def _check_fresh(
        self,
        proposal: Proposal,
        expected_status: Optional[ProposalStatus],
        expected_version: Optional[int],
        operation: str,
    ) -> None:
        if expected_status is not None and expected_status is not proposal.status:
            raise self._stale(proposal, operation, expected_status=expected_status.value)
        if expected_version is not None and expected_version != proposal.version:
            raise self._stale(proposal, operation, expected_version=expected_version)

    @staticmethod
    def _stale(proposal: Proposal, operation: str, **observed: Any) -> StaleState:
        return StaleState(
            "Proposal has changed since it was read; re-fetch and retry",
            operation=operation,
            proposal_id=proposal.id,
            details={
                "current_status": proposal.status.value,
                "current_version": proposal.version,
                **observed,
            },
        )

    @staticmethod
    def _require_draft(proposal: Proposal, operation: str) -> None:
        if proposal.status is not ProposalStatus.DRAFT:
            raise WrongState(
                "Only DRAFT proposals can be modified or deleted",
                operation=operation,
                proposal_id=proposal.id,
                details={"status": proposal.status.value},
            )

    async def _apply(
        self,
        actor: Actor,
        proposal: Proposal,
        resolved: ResolvedTransition,
        operation: str,
    ) -> Proposal:
        rule, payload = resolved.rule, resolved.payload
        values, note = self._transition_values(rule.target, payload)

        if rule.checks_call_window:
            call = await self._calls.get_call(proposal.call_id)
            self._call_window.check_submission(proposal, call)

        if rule.appends_revision:
            record = await self._ledger.append(proposal, payload["changes"], payload["document_ref"])
            if record.document_ref:
                values["document_ref"] = record.document_ref
            note = record.changes

        updated = await self._proposals.compare_and_set(proposal.id, proposal.version, values)
        if updated is None:
            raise self._stale(proposal, operation)

        await self._record_change(proposal.id, proposal.status, updated.status, actor, note)
        return updated

    @staticmethod
    def _transition_values(
        target: ProposalStatus,
        payload: Dict[str, Optional[str]],
    ) -> Tuple[Dict[str, Any], Optional[str]]:
        # rejection_reason is set iff the proposal ends up REJECTED
        values: Dict[str, Any] = {"status": target, "rejection_reason": None}
        note = None
        if target is ProposalStatus.REJECTED:
            values["rejection_reason"] = note = payload["rejection_reason"]
        elif target is ProposalStatus.REVISIONS_REQUESTED:
            values["revision_requirements"] = note = payload["revision_requirements"]
        return values, note

    async def _record_change(
        self,
        proposal_id: str,
        from_status: Optional[ProposalStatus],
        to_status: ProposalStatus,
        actor: Actor,
        note: Optional[str],
    ) -> None:
        await self._history.record(
            StatusChange(
                id=str(uuid.uuid4()),
                proposal_id=proposal_id,
                from_status=from_status,
                to_status=to_status,
                actor_id=actor.id,
                note=note,
                created_at=self._clock(),
            )
        )
