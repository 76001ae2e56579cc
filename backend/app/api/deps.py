"""API dependencies."""
from typing import AsyncGenerator

from fastapi import Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import Unauthenticated
from app.core.logging import get_logger
from app.core.middleware import get_request_id
from app.db.session import get_db as get_db_session
from app.models.proposal import Actor
from app.services.lifecycle import ProposalService
from app.services.notifications import get_notifier
from app.services.storage.documents import DocumentStore, get_document_store

logger = get_logger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async for session in get_db_session():
        yield session


async def get_current_request_id(request: Request) -> str:
    """
    현재 요청의 Request ID를 가져옵니다.

    Args:
        request: FastAPI 요청 객체

    Returns:
        Request ID 문자열
    """
    return await get_request_id(request)


async def get_current_actor(request: Request) -> Actor:
    """
    인증 게이트웨이가 전달한 요청자 정보를 읽습니다.

    The gateway has already authenticated the caller; its id and role
    headers are trusted as-is.
    """
    settings = get_settings()
    actor_id = request.headers.get(settings.actor_id_header)
    role = request.headers.get(settings.actor_role_header)

    if not actor_id or not role:
        logger.warning("actor_headers_missing", path=request.url.path)
        raise Unauthenticated("Authenticated actor is required", operation="authenticate")

    try:
        return Actor(id=actor_id, role=role.upper())
    except PydanticValidationError:
        logger.warning("actor_headers_invalid", path=request.url.path, role=role)
        raise Unauthenticated(
            "Invalid actor role",
            operation="authenticate",
            details={"role": role},
        )


async def get_proposal_service(db: AsyncSession = Depends(get_db)) -> ProposalService:
    """Proposal lifecycle service bound to the request's session."""
    return ProposalService(db, notifier=get_notifier())


def get_documents() -> DocumentStore:
    """Configured document store."""
    return get_document_store()
