"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.config import Settings, get_settings
from kitchencogs.services.clock import ShopClock
from kitchencogs.storage import get_connection

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic liveness check.

    Returns 200 if the service is running.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/health/ready")
def readiness_check(
    settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """
    Readiness check - verifies dependencies are available.

    Checks:
    - Database connectivity
    - Shop timezone is a valid IANA name
    - Email (if configured)
    """
    checks: Dict[str, Dict[str, Any]] = {}

    try:
        conn = get_connection(settings.database_path)
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            conn.close()
        checks["database"] = {"status": "ok"}
    except Exception as e:
        checks["database"] = {"status": "error", "message": str(e)}

    try:
        clock = ShopClock(settings.shop_timezone)
        checks["clock"] = {"status": "ok", "day_key": clock.day_key()}
    except Exception as e:
        checks["clock"] = {"status": "error", "message": str(e)}

    checks["email"] = {"status": "configured" if settings.email_enabled else "not_configured"}

    all_ok = all(c.get("status") != "error" for c in checks.values())

    return {
        "status": "ready" if all_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
        "checks": checks
    }


@router.get("/health/info")
async def service_info(
    settings: Settings = Depends(get_settings)
) -> Dict[str, Any]:
    """Return service information."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": "development" if settings.debug else "production",
        "timezone": settings.shop_timezone,
    }
