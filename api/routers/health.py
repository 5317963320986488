"""
api.routers.health - Health check endpoints.

Provides endpoints for monitoring service health and status.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException

from api import __version__
from api.models import HealthResponse
from api.dependencies import get_app_context

if TYPE_CHECKING:
    from core.interfaces import IAppContext

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(
    ctx: "IAppContext" = Depends(get_app_context),
) -> HealthResponse:
    """
    Check API health status.

    The primary marketplace is mandatory, so it is always "configured".
    Optional providers without credentials report "disabled" and make the
    overall status "degraded".
    """
    config = ctx.config
    services: dict[str, str] = {
        "bitskins": "configured",
        "csfloat": "configured" if config.csfloat_api_key else "disabled",
        "steam": "configured" if config.steam_login_secure else "disabled",
    }

    try:
        rate = ctx.exchange_rate()
        services["exchange_rate"] = str(rate.value)
    except Exception as e:
        logger.warning(f"Exchange rate health check failed: {e}")
        services["exchange_rate"] = f"error: {str(e)[:50]}"

    degraded = any(v == "disabled" or v.startswith("error") for v in services.values())

    return HealthResponse(
        status="degraded" if degraded else "healthy",
        version=__version__,
        services=services,
    )


@router.get("/health/ready")
async def readiness_check(
    ctx: "IAppContext" = Depends(get_app_context),
) -> dict[str, str]:
    """
    Kubernetes-style readiness probe.

    Returns 200 once the engine is wired and serving a rate.
    """
    try:
        ctx.exchange_rate()
        return {"status": "ready"}
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"Not ready: {e}")


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Kubernetes-style liveness probe.

    Returns 200 if the service is alive (even if not fully ready).
    """
    return {"status": "alive"}
