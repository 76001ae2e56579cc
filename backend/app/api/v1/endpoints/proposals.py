"""Proposal API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_actor, get_current_request_id, get_proposal_service
from app.core.api import ApiResponse
from app.core.logging import get_logger
from app.models.proposal import (
    Actor,
    Proposal,
    ProposalCreate,
    ProposalDetail,
    ProposalListResponse,
    ProposalStatus,
    ProposalUpdate,
    RevisionCreate,
    RevisionRecord,
    StatusChange,
    TransitionRequest,
)
from app.services.lifecycle import ProposalService

logger = get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=ApiResponse[Proposal], status_code=status.HTTP_201_CREATED)
async def create_proposal(
    data: ProposalCreate,
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """DRAFT 제안서를 생성합니다."""
    proposal = await service.create(actor, data)
    return ApiResponse.success_response(data=proposal, request_id=request_id)


@router.get("/", response_model=ApiResponse[ProposalListResponse])
async def list_proposals(
    status_filter: Optional[ProposalStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """List proposals visible to the caller."""
    proposals = await service.list_for(actor, status_filter)
    response_data = ProposalListResponse(
        proposals=proposals,
        total=len(proposals),
        status=status_filter,
    )
    return ApiResponse.success_response(data=response_data, request_id=request_id)


@router.get("/{proposal_id}", response_model=ApiResponse[ProposalDetail])
async def get_proposal(
    proposal_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """제안서 상세 (수정본 포함)."""
    detail = await service.get(actor, proposal_id)
    return ApiResponse.success_response(data=detail, request_id=request_id)


@router.put("/{proposal_id}", response_model=ApiResponse[Proposal])
async def update_proposal(
    proposal_id: str,
    data: ProposalUpdate,
    expected_version: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """Edit a DRAFT proposal."""
    proposal = await service.update_draft(actor, proposal_id, data, expected_version)
    return ApiResponse.success_response(data=proposal, request_id=request_id)


@router.delete("/{proposal_id}", response_model=ApiResponse[dict])
async def delete_proposal(
    proposal_id: str,
    expected_version: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """DRAFT 제안서를 삭제합니다."""
    await service.delete(actor, proposal_id, expected_version)
    return ApiResponse.success_response(
        data={"proposal_id": proposal_id, "deleted": True},
        request_id=request_id,
    )


@router.post("/{proposal_id}/transitions", response_model=ApiResponse[Proposal])
async def transition_proposal(
    proposal_id: str,
    request: TransitionRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """
    Request a status transition.

    Submission, review start, acceptance, rejection and revision requests
    all go through this endpoint; `to` names the target status.
    """
    proposal = await service.request_transition(actor, proposal_id, request)
    return ApiResponse.success_response(data=proposal, request_id=request_id)


@router.post("/{proposal_id}/revisions", response_model=ApiResponse[Proposal])
async def submit_revision(
    proposal_id: str,
    data: RevisionCreate,
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """수정본을 제출하고 재심사로 돌려보냅니다."""
    proposal = await service.submit_revision(actor, proposal_id, data)
    return ApiResponse.success_response(data=proposal, request_id=request_id)


@router.get("/{proposal_id}/revisions", response_model=ApiResponse[List[RevisionRecord]])
async def list_revisions(
    proposal_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """Revisions of a proposal, oldest first."""
    history = await service.list_revisions(actor, proposal_id)
    revisions = [record async for record in history]
    return ApiResponse.success_response(data=revisions, request_id=request_id)


@router.get("/{proposal_id}/history", response_model=ApiResponse[List[StatusChange]])
async def proposal_history(
    proposal_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """상태 변경 이력."""
    changes = await service.history(actor, proposal_id)
    return ApiResponse.success_response(data=changes, request_id=request_id)
