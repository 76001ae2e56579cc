"""Call registry repository."""
import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional

from app.db.models.call import CallORM
from app.models.call import Call, CallCreate, CallStatus


class CallRepository:
    """
    Read access to the call registry.

    Satisfies the CallRegistry protocol used by the call window validator.
    `create` only exists for seeding; call authoring lives elsewhere.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize repository with database session."""
        self._db = db

    async def get_call(self, call_id: str) -> Optional[Call]:
        """Get call by ID."""
        result = await self._db.execute(select(CallORM).where(CallORM.id == call_id))
        call_orm = result.scalar_one_or_none()
        if not call_orm:
            return None
        return self._orm_to_model(call_orm)

    async def create(self, call: CallCreate) -> Call:
        """Create a call record."""
        call_orm = CallORM(
            id=call.id or str(uuid.uuid4()),
            title=call.title,
            description=call.description,
            deadline=call.deadline,
            status=call.status.value,
            budget_min=call.budget_min,
            budget_max=call.budget_max,
            currency=call.currency,
        )
        self._db.add(call_orm)
        await self._db.flush()
        return self._orm_to_model(call_orm)

    async def count(self) -> int:
        """Count registered calls."""
        result = await self._db.execute(select(func.count(CallORM.id)))
        return result.scalar() or 0

    @staticmethod
    def _orm_to_model(call_orm: CallORM) -> Call:
        """Convert ORM to Pydantic model."""
        return Call(
            id=call_orm.id,
            title=call_orm.title,
            description=call_orm.description or "",
            deadline=call_orm.deadline,
            status=CallStatus(call_orm.status),
            budget_min=call_orm.budget_min,
            budget_max=call_orm.budget_max,
            currency=call_orm.currency,
        )
