"""Proposal repository for database operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from datetime import datetime
from typing import Any, Dict, Optional, List

from app.db.models.proposal import ProposalORM
from app.db.models.status_change import StatusChangeORM
from app.models.proposal import Proposal, ProposalStatus


class ProposalRepository:
    """Repository for Proposal database operations."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize repository with database session."""
        self._db = db

    async def get_by_id(self, proposal_id: str) -> Optional[Proposal]:
        """Get proposal by ID."""
        result = await self._db.execute(
            select(ProposalORM)
            .where(ProposalORM.id == proposal_id)
            # refresh rows already in the identity map
            .execution_options(populate_existing=True)
        )
        proposal_orm = result.scalar_one_or_none()
        if not proposal_orm:
            return None
        return self._orm_to_model(proposal_orm)

    async def list(
        self,
        researcher_id: Optional[str] = None,
        status: Optional[ProposalStatus] = None,
    ) -> List[Proposal]:
        """List proposals, newest first."""
        query = select(ProposalORM)

        if researcher_id is not None:
            query = query.where(ProposalORM.researcher_id == researcher_id)
        if status is not None:
            query = query.where(ProposalORM.status == status.value)

        result = await self._db.execute(
            query.order_by(ProposalORM.created_at.desc(), ProposalORM.id)
        )
        return [self._orm_to_model(p) for p in result.scalars().all()]

    async def create(self, proposal: Proposal) -> Proposal:
        """Create new proposal."""
        proposal_orm = ProposalORM(
            id=proposal.id,
            researcher_id=proposal.researcher_id,
            call_id=proposal.call_id,
            title=proposal.title,
            abstract=proposal.abstract,
            budget=proposal.budget,
            document_ref=proposal.document_ref,
            status=proposal.status.value,
            rejection_reason=proposal.rejection_reason,
            revision_requirements=proposal.revision_requirements,
            version=proposal.version,
            created_at=proposal.created_at,
            updated_at=proposal.updated_at,
        )
        self._db.add(proposal_orm)
        await self._db.flush()
        return self._orm_to_model(proposal_orm)

    async def compare_and_set(
        self,
        proposal_id: str,
        expected_version: int,
        values: Dict[str, Any],
    ) -> Optional[Proposal]:
        """
        Update a proposal only if its version is still expected_version.

        The version is bumped as part of the same statement. Returns None
        when no row matched, i.e. the proposal changed or disappeared
        since it was read.
        """
        update_values = dict(values)
        if isinstance(update_values.get("status"), ProposalStatus):
            update_values["status"] = update_values["status"].value
        update_values["version"] = expected_version + 1
        update_values["updated_at"] = datetime.now()

        result = await self._db.execute(
            update(ProposalORM)
            .where(ProposalORM.id == proposal_id)
            .where(ProposalORM.version == expected_version)
            .values(**update_values)
            .returning(ProposalORM)
            .execution_options(synchronize_session="fetch")
        )
        proposal_orm = result.scalar_one_or_none()
        if not proposal_orm:
            return None
        return self._orm_to_model(proposal_orm)

    async def delete(self, proposal_id: str, expected_version: int) -> bool:
        """Delete a proposal and its status history if the version still matches."""
        result = await self._db.execute(
            select(ProposalORM.id)
            .where(ProposalORM.id == proposal_id)
            .where(ProposalORM.version == expected_version)
        )
        if result.scalar_one_or_none() is None:
            return False

        await self._db.execute(
            delete(StatusChangeORM).where(StatusChangeORM.proposal_id == proposal_id)
        )
        result = await self._db.execute(
            delete(ProposalORM)
            .where(ProposalORM.id == proposal_id)
            .where(ProposalORM.version == expected_version)
        )
        return result.rowcount > 0

    async def count_by_status(self) -> Dict[ProposalStatus, int]:
        """Count proposals per status; statuses without proposals count as 0."""
        result = await self._db.execute(
            select(ProposalORM.status, func.count(ProposalORM.id)).group_by(ProposalORM.status)
        )
        counts = {status: 0 for status in ProposalStatus}
        for status, count in result.all():
            counts[ProposalStatus(status)] = count
        return counts

    @staticmethod
    def _orm_to_model(proposal_orm: ProposalORM) -> Proposal:
        """Convert ORM to Pydantic model."""
        return Proposal(
            id=proposal_orm.id,
            researcher_id=proposal_orm.researcher_id,
            call_id=proposal_orm.call_id,
            title=proposal_orm.title,
            abstract=proposal_orm.abstract,
            budget=proposal_orm.budget,
            document_ref=proposal_orm.document_ref,
            status=ProposalStatus(proposal_orm.status),
            rejection_reason=proposal_orm.rejection_reason,
            revision_requirements=proposal_orm.revision_requirements,
            version=proposal_orm.version,
            created_at=proposal_orm.created_at,
            updated_at=proposal_orm.updated_at,
        )
