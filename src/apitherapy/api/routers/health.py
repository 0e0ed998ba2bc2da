"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ...application.session_store import SessionStore
from ...core.config import get_settings
from ..deps import get_session_store
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


@router.get("", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns the current status of the service.
    """
    settings = get_settings()
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        service=settings.app_name,
    ), message="OK")


@router.get("/ready", response_model=ApiResponse[dict])
async def readiness_check(request: Request, store: SessionStore = Depends(get_session_store)):
    """
    Readiness check endpoint.

    The session store must be restored; the recommender reports which
    backend is active. MongoDB is only used by the offline migration and is
    not checked here.
    """
    settings = get_settings()
    checks = {
        "session_store": f"ok ({store.step.value})",
        "recommendations": "azure_openai" if settings.azure_openai.is_configured else "keyword_rules",
    }
    return ok(request, data={"ready": True, "checks": checks}, message="READY")
