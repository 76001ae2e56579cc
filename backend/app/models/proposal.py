"""Proposal lifecycle models."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional
from datetime import datetime
from enum import Enum


class ProposalStatus(str, Enum):
    """제안서 상태."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"                         # 최종 상태
    REJECTED = "REJECTED"                         # 최종 상태
    REVISIONS_REQUESTED = "REVISIONS_REQUESTED"


class ActorRole(str, Enum):
    """요청자 역할."""
    RESEARCHER = "RESEARCHER"
    ADMIN = "ADMIN"


class Actor(BaseModel):
    """Authenticated identity initiating an operation."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role is ActorRole.ADMIN


class Proposal(BaseModel):
    """연구 과제 제안서."""
    id: str
    researcher_id: str
    call_id: str
    title: str
    abstract: str
    budget: float = Field(ge=0)
    document_ref: Optional[str] = None
    status: ProposalStatus = ProposalStatus.DRAFT
    rejection_reason: Optional[str] = None
    revision_requirements: Optional[str] = None
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def is_owned_by(self, actor: Actor) -> bool:
        return self.researcher_id == actor.id


class ProposalCreate(BaseModel):
    """제안서 생성 요청 (DRAFT)."""
    call_id: str
    title: str
    abstract: str
    budget: float = Field(default=0, ge=0)
    document_ref: Optional[str] = None


class ProposalUpdate(BaseModel):
    """DRAFT 제안서 수정 요청."""
    title: Optional[str] = None
    abstract: Optional[str] = None
    budget: Optional[float] = Field(default=None, ge=0)
    document_ref: Optional[str] = None


class TransitionRequest(BaseModel):
    """
    상태 전이 요청.

    expected_status / expected_version are what the caller last observed;
    a mismatch with the persisted proposal fails with StaleState.
    """
    to: ProposalStatus
    expected_status: Optional[ProposalStatus] = None
    expected_version: Optional[int] = Field(default=None, ge=1)
    rejection_reason: Optional[str] = None
    revision_requirements: Optional[str] = None
    changes: Optional[str] = None
    document_ref: Optional[str] = None


class RevisionCreate(BaseModel):
    """수정본 제출 요청."""
    changes: str
    document_ref: Optional[str] = None
    expected_version: Optional[int] = Field(default=None, ge=1)


class RevisionRecord(BaseModel):
    """수정본 기록 (추가 전용)."""
    model_config = ConfigDict(frozen=True)

    id: str
    proposal_id: str
    changes: str
    document_ref: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class StatusChange(BaseModel):
    """상태 변경 이력."""
    model_config = ConfigDict(frozen=True)

    id: str
    proposal_id: str
    from_status: Optional[ProposalStatus] = None
    to_status: ProposalStatus
    actor_id: str
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class ProposalDetail(Proposal):
    """제안서 상세 (수정본 포함)."""
    revisions: List[RevisionRecord] = Field(default_factory=list)


class ProposalListResponse(BaseModel):
    """제안서 목록 응답."""
    proposals: List[Proposal]
    total: int
    status: Optional[ProposalStatus] = None


class ProposalStats(BaseModel):
    """관리자 대시보드 통계."""
    proposals_count: int
    calls_count: int
    by_status: Dict[ProposalStatus, int]
