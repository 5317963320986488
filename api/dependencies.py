"""
api.dependencies - FastAPI dependency injection providers.

Routers receive the engine facade (core.app_context.AppContext, typed as
IAppContext) through Depends(get_app_context).
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from core.interfaces import IAppContext


def get_app_context() -> "IAppContext":
    """
    Return the AppContext created by the app lifespan.

    It owns the marketplace clients, the exchange-rate cache and the image
    catalog. Raises RuntimeError before startup has run.
    """
    from api.main import get_app_context as _get_ctx

    return _get_ctx()
