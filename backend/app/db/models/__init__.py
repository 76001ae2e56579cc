"""Database ORM models."""
from app.db.models.call import CallORM
from app.db.models.proposal import ProposalORM
from app.db.models.revision import RevisionORM
from app.db.models.status_change import StatusChangeORM

__all__ = [
    "CallORM",
    "ProposalORM",
    "RevisionORM",
    "StatusChangeORM",
]
