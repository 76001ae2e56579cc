"""Database repositories."""
from app.db.repositories.call import CallRepository
from app.db.repositories.proposal import ProposalRepository
from app.db.repositories.revision import RevisionRepository
from app.db.repositories.status_change import StatusChangeRepository

__all__ = [
    "CallRepository",
    "ProposalRepository",
    "RevisionRepository",
    "StatusChangeRepository",
]
