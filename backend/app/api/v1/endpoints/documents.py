"""Document upload endpoint."""
from fastapi import APIRouter, Depends, File, UploadFile, status

from app.api.deps import get_current_actor, get_current_request_id, get_documents
from app.core.api import ApiResponse
from app.core.logging import get_logger
from app.models.proposal import Actor
from app.services.storage.documents import DocumentStore

logger = get_logger(__name__)
router = APIRouter()


@router.post("", response_model=ApiResponse[dict], status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    actor: Actor = Depends(get_current_actor),
    store: DocumentStore = Depends(get_documents),
    request_id: str = Depends(get_current_request_id),
):
    """
    제안서 문서를 업로드합니다.

    Returns the opaque reference to pass as `document_ref` on a proposal
    or revision.
    """
    content = await file.read()
    document_ref = await store.save(file.filename or "document", content)
    logger.info("document_uploaded", actor_id=actor.id, document_ref=document_ref)
    return ApiResponse.success_response(
        data={"document_ref": document_ref},
        request_id=request_id,
    )
