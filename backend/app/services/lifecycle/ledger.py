"""Revision ledger: append-only amendments submitted in response to review."""
import uuid
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional

from app.core.errors import WrongState
from app.db.repositories.revision import RevisionRepository
from app.models.proposal import Proposal, ProposalStatus, RevisionRecord


class RevisionHistory:
    """
    Revisions of one proposal, oldest first.

    Nothing is read until iteration starts, and every iteration re-queries,
    so the same history object can be walked any number of times.
    """

    def __init__(self, repo: RevisionRepository, proposal_id: str) -> None:
        self._repo = repo
        self.proposal_id = proposal_id

    async def __aiter__(self) -> AsyncIterator[RevisionRecord]:
        for record in await self._repo.list_by_proposal(self.proposal_id):
            yield record

    async def all(self) -> List[RevisionRecord]:
        return await self._repo.list_by_proposal(self.proposal_id)

    async def latest(self) -> Optional[RevisionRecord]:
        return await self._repo.get_latest(self.proposal_id)

    async def count(self) -> int:
        return await self._repo.count_by_proposal(self.proposal_id)


class RevisionLedger:
    """Appends revision records inside the caller's transaction."""

    def __init__(self, repo: RevisionRepository, clock: Callable[[], datetime] = datetime.now) -> None:
        self._repo = repo
        self._clock = clock

    @staticmethod
    def check_open(proposal: Proposal) -> None:
        """Raise WrongState unless the proposal is awaiting revisions."""
        if proposal.status is not ProposalStatus.REVISIONS_REQUESTED:
            raise WrongState(
                "Revisions can only be submitted when revisions were requested",
                operation="append_revision",
                proposal_id=proposal.id,
                details={"status": proposal.status.value},
            )

    async def append(
        self,
        proposal: Proposal,
        changes: str,
        document_ref: Optional[str] = None,
    ) -> RevisionRecord:
        """
        Append a revision to a proposal awaiting revisions.

        Does not commit: the caller commits the append together with the
        REVISIONS_REQUESTED → UNDER_REVIEW status write.

        Raises:
            WrongState: proposal is not REVISIONS_REQUESTED
        """
        self.check_open(proposal)

        record = RevisionRecord(
            id=str(uuid.uuid4()),
            proposal_id=proposal.id,
            changes=changes,
            document_ref=document_ref,
            created_at=self._clock(),
        )
        return await self._repo.append(record)

    def list(self, proposal_id: str) -> RevisionHistory:
        return RevisionHistory(self._repo, proposal_id)
