"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...db.supabase import get_supabase_client

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/traffic", status_code=status.HTTP_200_OK)
def health_traffic() -> dict:
    """Check the live traffic feed, or report that the mock feed is in use."""
    if not settings.traffic_feed_url:
        return {"service": "traffic", "healthy": True, "source": "mock"}
    from ...services.rerouting.traffic import check_health

    return {"service": "traffic", "healthy": check_health(), "source": settings.traffic_feed_url}


@router.get("/health/store", status_code=status.HTTP_200_OK)
def health_store() -> dict:
    return {"service": "supabase", "configured": get_supabase_client() is not None}
