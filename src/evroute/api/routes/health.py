"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_directions_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.routing.directions_client import check_health as directions_health_check
    return directions_health_check


@router.get("/health/directions", status_code=status.HTTP_200_OK)
def health_directions() -> dict:
    """Check directions provider health."""
    try:
        directions_health_check = _get_directions_health_check()
        status_flag = directions_health_check()
        return {"service": "directions", "healthy": status_flag}
    except Exception as e:
        return {"service": "directions", "healthy": False, "error": str(e)}


@router.get("/health/planner", status_code=status.HTTP_200_OK)
def health_planner() -> dict:
    """Report whether a route planner service is configured."""
    return {"service": "planner", "configured": bool(settings.planner_base_url)}
