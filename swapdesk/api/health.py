from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..services.session import SwapSession
from .deps import get_session

router = APIRouter()


@router.get("/healthz")
async def health_check(session: SwapSession = Depends(get_session)) -> Dict[str, Any]:
    """Report catalog state and provider configuration"""
    provider_status = await session.health_check()
    catalog = session.tokens.catalog
    refresh_error = session.tokens.refresh_error

    all_configured = all(status.get("status") == "configured" for status in provider_status.values())
    healthy = all_configured and catalog.is_loaded and refresh_error is None

    return {
        "status": "healthy" if healthy else "degraded",
        "catalog": {
            "loaded": catalog.is_loaded,
            "chains": len(catalog),
            "error": str(refresh_error) if refresh_error else None,
        },
        "providers": provider_status,
    }
