"""Revision repository for database operations.

The ledger is append-only: this repository exposes no update or delete.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional, List

from app.db.models.revision import RevisionORM
from app.models.proposal import RevisionRecord


class RevisionRepository:
    """Repository for RevisionRecord database operations."""

    def __init__(self, db: AsyncSession) -> None:
        """Initialize repository with database session."""
        self._db = db

    async def append(self, record: RevisionRecord) -> RevisionRecord:
        """Append a revision record after the proposal's existing ones."""
        result = await self._db.execute(
            select(func.coalesce(func.max(RevisionORM.sequence), 0)).where(
                RevisionORM.proposal_id == record.proposal_id
            )
        )
        next_sequence = (result.scalar() or 0) + 1

        revision_orm = RevisionORM(
            id=record.id,
            proposal_id=record.proposal_id,
            sequence=next_sequence,
            changes=record.changes,
            document_ref=record.document_ref,
            created_at=record.created_at,
        )
        self._db.add(revision_orm)
        await self._db.flush()
        return self._orm_to_model(revision_orm)

    async def list_by_proposal(self, proposal_id: str) -> List[RevisionRecord]:
        """Get revisions for a proposal, oldest first."""
        result = await self._db.execute(
            select(RevisionORM)
            .where(RevisionORM.proposal_id == proposal_id)
            .order_by(RevisionORM.created_at.asc(), RevisionORM.sequence.asc())
        )
        return [self._orm_to_model(r) for r in result.scalars().all()]

    async def get_latest(self, proposal_id: str) -> Optional[RevisionRecord]:
        """Get the most recent revision for a proposal."""
        result = await self._db.execute(
            select(RevisionORM)
            .where(RevisionORM.proposal_id == proposal_id)
            .order_by(RevisionORM.created_at.desc(), RevisionORM.sequence.desc())
            .limit(1)
        )
        revision_orm = result.scalar_one_or_none()
        if not revision_orm:
            return None
        return self._orm_to_model(revision_orm)

    async def count_by_proposal(self, proposal_id: str) -> int:
        """Count revisions for a proposal."""
        result = await self._db.execute(
            select(func.count(RevisionORM.id)).where(RevisionORM.proposal_id == proposal_id)
        )
        return result.scalar() or 0

    @staticmethod
    def _orm_to_model(revision_orm: RevisionORM) -> RevisionRecord:
        """Convert ORM to Pydantic model."""
        return RevisionRecord(
            id=revision_orm.id,
            proposal_id=revision_orm.proposal_id,
            changes=revision_orm.changes,
            document_ref=revision_orm.document_ref,
            created_at=revision_orm.created_at,
        )
