"""
Health check endpoints for the application.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from techmarket.api.dependencies import HealthCheckerDep
from techmarket.config.logging import get_logger
from techmarket.infrastructure.monitoring.metrics import get_metrics, get_metrics_content_type

logger = get_logger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
async def health_check(health_checker: HealthCheckerDep) -> Dict[str, Any]:
    """Component health: database and broker."""
    components = await health_checker.run_health_checks()
    healthy = all(result.get("status") == "healthy" for result in components.values())

    return {
        "status": "healthy" if healthy else "degraded",
        "components": components,
        "timestamp": _timestamp(),
    }


@router.get("/ready")
async def readiness_check(health_checker: HealthCheckerDep) -> Dict[str, Any]:
    """Readiness check for Kubernetes."""
    if not await health_checker.check_readiness():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready",
        )
    return {"status": "ready", "timestamp": _timestamp()}


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Liveness check for Kubernetes."""
    return {"status": "alive", "timestamp": _timestamp()}


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    """Prometheus metrics endpoint."""
    logger.debug("Prometheus metrics requested")
    return Response(content=get_metrics(), media_type=get_metrics_content_type())
