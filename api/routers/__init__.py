"""API routers package."""

from api.routers.health import router as health_router
from api.routers.skins import router as skins_router
from api.routers.exchange_rate import router as exchange_rate_router

__all__ = [
    "health_router",
    "skins_router",
    "exchange_rate_router",
]
