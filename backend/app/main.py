"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.api import ApiResponse
from app.core.config import Settings, get_settings
from app.core.errors import ErrorCode, ProposalError
from app.core.logging import configure_logging, get_logger, log_error
from app.core.middleware import RequestContextMiddleware
from app.db.session import close_db, init_db
from app.services.notifications import drain_events

settings = get_settings()
configure_logging(settings)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: upload dir and tables. Shutdown: pending notifications, then the pool."""
    logger.info("application_startup", version=settings.app_version)

    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    await init_db()
    logger.info("database_initialized", database_url=settings.database_url.split("://")[0])

    yield

    logger.info("application_shutdown")
    await drain_events()
    await close_db()


async def proposal_error_handler(request: Request, exc: ProposalError) -> JSONResponse:
    """수명주기 예외를 HTTP 상태 코드와 표준 응답으로 변환."""
    log_error(logger, exc, {"path": request.url.path, "method": request.method})
    body = ApiResponse.from_error(exc, request_id=getattr(request.state, "request_id", None))
    return JSONResponse(status_code=exc.http_status, content=body.model_dump(mode="json"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a 500 with no internals in the body."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_type=type(exc).__name__,
    )
    body = ApiResponse.error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="Internal server error",
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the application with middleware, routers and error handlers."""
    application = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(
        RequestContextMiddleware,
        actor_header=app_settings.actor_id_header,
    )

    application.add_exception_handler(ProposalError, proposal_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)

    application.include_router(api_router, prefix=app_settings.api_prefix)

    @application.get("/")
    async def root():
        return {
            "name": app_settings.app_name,
            "version": app_settings.app_version,
            "status": "running",
        }

    @application.get("/health")
    async def health():
        return {"status": "healthy", "version": app_settings.app_version}

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
