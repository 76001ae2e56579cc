"""Status history repository."""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from app.db.models.status_change import StatusChangeORM
from app.models.proposal import ProposalStatus, StatusChange


class StatusChangeRepository:
    """Repository for proposal status history."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def record(self, change: StatusChange) -> StatusChange:
        """Record a status change inside the current transaction."""
        change_orm = StatusChangeORM(
            id=change.id,
            proposal_id=change.proposal_id,
            from_status=change.from_status.value if change.from_status else None,
            to_status=change.to_status.value,
            actor_id=change.actor_id,
            note=change.note,
            created_at=change.created_at,
        )
        self._db.add(change_orm)
        await self._db.flush()
        return change

    async def list_by_proposal(self, proposal_id: str) -> List[StatusChange]:
        """Get status history for a proposal, oldest first."""
        result = await self._db.execute(
            select(StatusChangeORM)
            .where(StatusChangeORM.proposal_id == proposal_id)
            .order_by(StatusChangeORM.created_at.asc())
        )
        return [self._orm_to_model(c) for c in result.scalars().all()]

    @staticmethod
    def _orm_to_model(change_orm: StatusChangeORM) -> StatusChange:
        return StatusChange(
            id=change_orm.id,
            proposal_id=change_orm.proposal_id,
            from_status=ProposalStatus(change_orm.from_status) if change_orm.from_status else None,
            to_status=ProposalStatus(change_orm.to_status),
            actor_id=change_orm.actor_id,
            note=change_orm.note,
            created_at=change_orm.created_at,
        )
