# docvault/api/routers/health.py

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from docvault.api.dependencies import get_container
from docvault.core.container import ServiceContainer

router = APIRouter()


@router.get("/health")
async def health(
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)],
):
    """Health check with correlation ID from request state."""
    settings = container.settings
    return {
        "status": "ok",
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
        "rate_limit_enabled": container.admission.enabled,
    }
