"""API 미들웨어."""
from typing import Callable, Optional
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.logging import get_logger

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    요청 컨텍스트 바인딩 미들웨어.

    Binds the request id and the gateway-supplied actor id to structlog's
    context variables so every log line written while handling the request
    (transition logs, error logs, notification failures) carries both.
    The request id is echoed back in the response header.
    """

    def __init__(
        self,
        app: ASGIApp,
        header_name: str = "X-Request-ID",
        actor_header: Optional[str] = None,
    ) -> None:
        super().__init__(app)
        self.header_name = header_name
        self.actor_header = actor_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = request_id

        context = {"request_id": request_id}
        if self.actor_header and request.headers.get(self.actor_header):
            context["actor_id"] = request.headers[self.actor_header]
        structlog.contextvars.bind_contextvars(**context)

        try:
            logger.info("request_started", method=request.method, path=request.url.path)
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars(*context)

        response.headers[self.header_name] = request_id
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            request_id=request_id,
        )
        return response


async def get_request_id(request: Request) -> str:
    """Request ID set by RequestContextMiddleware, or a fresh one outside it."""
    return getattr(request.state, "request_id", None) or str(uuid4())
