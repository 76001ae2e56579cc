"""Proposal revision ORM model."""
from sqlalchemy import String, DateTime, Integer, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base


class RevisionORM(Base):
    """Append-only revision ledger table."""
    __tablename__ = "proposal_revisions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    proposal_id: Mapped[str] = mapped_column(
        String, ForeignKey("proposals.id"), nullable=False, index=True
    )
    # Insertion order; ties on created_at are broken by this column
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    changes: Mapped[str] = mapped_column(Text, nullable=False)
    document_ref: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
