"""Structured logging configuration."""
import logging
from typing import Any, Optional

import structlog

from app.core.errors import ErrorCategory, ProposalError

# 에러 카테고리별 로그 레벨
_CATEGORY_LEVELS = {
    ErrorCategory.TRANSIENT: "info",     # 호출자가 다시 조회 후 재요청
    ErrorCategory.PERMANENT: "warning",  # 잘못된 요청
    ErrorCategory.DEGRADED: "error",     # 커밋 후 부수 효과 실패
}


def configure_logging(settings: Any) -> None:
    """
    structlog 설정.

    JSON lines in production, a console renderer when ``debug`` is set.
    Standard-library loggers (tenacity retries, alembic, uvicorn) are
    routed to the same level.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format="%(message)s")

    renderer = structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    """Get a structured logger."""
    return structlog.get_logger(name)


def log_error(
    logger: structlog.BoundLogger,
    error: ProposalError,
    additional_context: Optional[dict[str, Any]] = None,
) -> None:
    """
    수명주기 에러를 카테고리에 맞는 레벨로 기록.

    The underlying exception, if any, is logged separately with its
    traceback so the first line stays compact.
    """
    event = error.to_dict()
    if additional_context:
        event.update(additional_context)

    level = _CATEGORY_LEVELS[error.category]
    getattr(logger, level)(f"error_{error.category.value}", **event)

    if error.original_error is not None:
        logger.error(
            "error_original_exception",
            error_type=type(error.original_error).__name__,
            exc_info=error.original_error,
            operation=error.operation,
            proposal_id=error.proposal_id,
        )
