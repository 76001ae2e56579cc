"""표준 API 응답 모델."""
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field

from app.core.errors import ErrorCode, ErrorResponse, ProposalError

T = TypeVar("T")


def _new_request_id() -> str:
    return str(uuid4())


class ApiResponse(BaseModel, Generic[T]):
    """
    모든 엔드포인트가 사용하는 응답 봉투.

    Exactly one of ``data`` and ``error`` is set, depending on ``success``.
    """

    success: bool = Field(..., description="요청 성공 여부")
    data: Optional[T] = Field(None, description="응답 데이터")
    error: Optional[ErrorResponse] = Field(None, description="실패 시 에러 정보")
    request_id: str = Field(default_factory=_new_request_id, description="요청 추적 ID")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="응답 생성 시각 (UTC)",
    )

    @classmethod
    def success_response(cls, data: T, request_id: Optional[str] = None) -> "ApiResponse[T]":
        """Wrap a payload in a successful envelope."""
        return cls(success=True, data=data, request_id=request_id or _new_request_id())

    @classmethod
    def error_response(
        cls,
        code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> "ApiResponse[None]":
        """Wrap an error code and message in a failed envelope."""
        return cls(
            success=False,
            error=ErrorResponse(code=code, message=message, details=details or {}),
            request_id=request_id or _new_request_id(),
        )

    @classmethod
    def from_error(cls, error: ProposalError, request_id: Optional[str] = None) -> "ApiResponse[None]":
        """
        수명주기 예외를 실패 응답으로 변환.

        Only the public payload (code, message, details) leaves the service;
        the operation name and the original exception stay in the logs.
        """
        return cls(
            success=False,
            error=error.to_response(),
            request_id=request_id or _new_request_id(),
        )
