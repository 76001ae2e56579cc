"""Proposal status history ORM model."""
from sqlalchemy import String, DateTime, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base


class StatusChangeORM(Base):
    """Audit trail of committed status changes."""
    __tablename__ = "proposal_status_changes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    proposal_id: Mapped[str] = mapped_column(
        String, ForeignKey("proposals.id"), nullable=False, index=True
    )
    from_status: Mapped[str | None] = mapped_column(String, nullable=True)  # None on creation
    to_status: Mapped[str] = mapped_column(String, nullable=False)
    actor_id: Mapped[str] = mapped_column(String, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
