"""Proposal ORM model."""
from sqlalchemy import String, Float, DateTime, Text, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.db.session import Base


class ProposalORM(Base):
    """Grant proposal table."""
    __tablename__ = "proposals"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    researcher_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    call_id: Mapped[str] = mapped_column(String, ForeignKey("calls.id"), nullable=False, index=True)

    # Content
    title: Mapped[str] = mapped_column(String, nullable=False)
    abstract: Mapped[str] = mapped_column(Text, nullable=False)
    budget: Mapped[float] = mapped_column(Float, default=0.0)
    document_ref: Mapped[str | None] = mapped_column(String, nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT", index=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    revision_requirements: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # compare-and-set token

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)
