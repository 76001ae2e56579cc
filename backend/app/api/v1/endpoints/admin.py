"""Admin review endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_actor, get_current_request_id, get_proposal_service
from app.core.api import ApiResponse
from app.models.proposal import Actor, ProposalListResponse, ProposalStats, ProposalStatus
from app.services.lifecycle import AuthorizationGate, ProposalService

router = APIRouter()


@router.get("/proposals", response_model=ApiResponse[ProposalListResponse])
async def list_all_proposals(
    status_filter: Optional[ProposalStatus] = Query(None, alias="status"),
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """전체 제안서 목록 (상태 필터)."""
    AuthorizationGate().authorize_admin(actor, "list_all")
    proposals = await service.list_for(actor, status_filter)
    response_data = ProposalListResponse(
        proposals=proposals,
        total=len(proposals),
        status=status_filter,
    )
    return ApiResponse.success_response(data=response_data, request_id=request_id)


@router.get("/stats", response_model=ApiResponse[ProposalStats])
async def proposal_stats(
    actor: Actor = Depends(get_current_actor),
    service: ProposalService = Depends(get_proposal_service),
    request_id: str = Depends(get_current_request_id),
):
    """Proposal and call counts for the admin dashboard."""
    stats = await service.stats(actor)
    return ApiResponse.success_response(data=stats, request_id=request_id)
