from fastapi import APIRouter, Request

from ...core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Liveness check with the configured store backend"""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "env": settings.app_env,
        "store_backend": type(getattr(request.app.state, "store", None)).__name__,
    }
