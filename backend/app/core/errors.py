"""Error categories and exception hierarchy for the proposal lifecycle."""
from typing import Any, Optional
from enum import Enum
from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """표준 API 에러 코드."""

    # Validation errors (1xx)
    VALIDATION_ERROR = "VALIDATION_001"

    # Not found errors (2xx)
    NOT_FOUND = "NOT_FOUND_002"

    # Authentication / authorization errors (3xx)
    UNAUTHORIZED = "AUTH_004"
    FORBIDDEN = "AUTH_006"

    # Lifecycle errors (4xx)
    STALE_STATE = "LIFECYCLE_001"
    INVALID_TRANSITION = "LIFECYCLE_002"
    WRONG_STATE = "LIFECYCLE_003"

    # Internal errors (5xx)
    INTERNAL_ERROR = "INTERNAL_005"
    NOTIFICATION_ERROR = "INTERNAL_008"


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델."""

    code: ErrorCode = Field(..., description="에러 코드")
    message: str = Field(..., description="에러 메시지")
    details: dict[str, Any] = Field(default_factory=dict, description="추가 에러 상세 정보")


class ErrorCategory(Enum):
    """Error category for handling decisions."""

    TRANSIENT = "transient"  # 상태를 다시 조회한 뒤 재요청 가능
    PERMANENT = "permanent"  # 요청 자체가 잘못됨, 재시도 무의미
    DEGRADED = "degraded"    # 커밋 이후 부수 효과 실패, 요청은 성공


class ProposalError(Exception):
    """Base exception for all proposal lifecycle errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    category: ErrorCategory = ErrorCategory.PERMANENT
    http_status: int = 500

    def __init__(
        self,
        message: str,
        operation: str,
        proposal_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        """
        Initialize lifecycle error.

        Args:
            message: Error message
            operation: Operation being performed (e.g., "request_transition")
            proposal_id: Optional proposal ID for context
            details: Additional error details
            original_error: Original exception that caused this error
        """
        self.message = message
        self.operation = operation
        self.proposal_id = proposal_id
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code.value,
            "message": self.message,
            "category": self.category.value,
            "operation": self.operation,
            "proposal_id": self.proposal_id,
            "details": self.details,
        }

    def to_response(self) -> ErrorResponse:
        """Convert error to the public error payload."""
        return ErrorResponse(code=self.code, message=self.message, details=self.details)


class ValidationError(ProposalError):
    """입력값 오류 (호출자 책임, 재시도 의미 없음)."""

    code = ErrorCode.VALIDATION_ERROR
    http_status = 422


class Unauthenticated(ProposalError):
    """게이트웨이 요청자 헤더가 없거나 유효하지 않음."""

    code = ErrorCode.UNAUTHORIZED
    http_status = 401


class Forbidden(ProposalError):
    """권한 없음. 요청한 전이의 유효성 여부를 노출하지 않는다."""

    code = ErrorCode.FORBIDDEN
    http_status = 403


class NotFound(ProposalError):
    """존재하지 않는 제안서."""

    code = ErrorCode.NOT_FOUND
    http_status = 404


class StaleState(ProposalError):
    """Caller observed an outdated status or version; re-fetch and reissue."""

    code = ErrorCode.STALE_STATE
    category = ErrorCategory.TRANSIENT
    http_status = 409


class InvalidTransition(ProposalError):
    """No edge exists for the requested (from, to) pair."""

    code = ErrorCode.INVALID_TRANSITION
    http_status = 422


class WrongState(ProposalError):
    """Operation requires a status the proposal does not currently hold."""

    code = ErrorCode.WRONG_STATE
    http_status = 409


class NotificationError(ProposalError):
    """알림 전송 실패 (커밋된 전이는 유지됨)."""

    code = ErrorCode.NOTIFICATION_ERROR
    category = ErrorCategory.DEGRADED
