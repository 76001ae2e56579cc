"""API v1 router aggregation."""
from fastapi import APIRouter
from app.api.v1.endpoints import admin, documents, proposals
from app.core.config import get_settings

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(proposals.router, prefix="/proposals", tags=["proposals"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])


@api_router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": get_settings().app_version}
