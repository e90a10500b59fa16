"""Health check endpoints for Kubernetes probes."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel, Field
from redis import RedisError

from kotsadm.config.settings import settings
from kotsadm.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

# Track application start time
APP_START_TIME = datetime.now(timezone.utc)


class HealthStatus(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Application environment")
    checks: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Individual component health checks"
    )


class ReadinessStatus(BaseModel):
    """Readiness check response model."""

    ready: bool = Field(..., description="Whether the application is ready")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: Dict[str, bool] = Field(
        default_factory=dict, description="Individual readiness checks"
    )
    message: Optional[str] = Field(None, description="Additional status message")


def check_redis(request: Request) -> Dict[str, Any]:
    try:
        request.app.state.store.redis.ping()
        return {"status": "healthy", "message": "Redis reachable"}
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return {"status": "unhealthy", "message": str(e)}


def check_rbac(request: Request) -> Dict[str, Any]:
    engine = getattr(request.app.state, "rbac_engine", None)
    if engine is None:
        return {"status": "unhealthy", "message": "RBAC registry not loaded"}

    return {
        "status": "healthy",
        "message": f"{len(engine.registry.list_roles())} roles, mode {engine.mode.value}",
    }


@router.get(
    settings.health_check_path,
    response_model=HealthStatus,
    responses={
        200: {"description": "Application is healthy"},
        503: {"description": "Application is unhealthy"},
    },
    summary="Health Check",
    description="Kubernetes liveness probe endpoint",
)
def health_check(request: Request, response: Response) -> HealthStatus:
    """Overall application health with individual component checks."""
    uptime = (datetime.now(timezone.utc) - APP_START_TIME).total_seconds()

    checks = {
        "redis": check_redis(request),
        "rbac": check_rbac(request),
    }

    unhealthy = [name for name, check in checks.items() if check["status"] != "healthy"]

    if unhealthy:
        overall_status = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Health check failed", extra={"status": overall_status, "checks": checks}
        )
    else:
        overall_status = "healthy"

    return HealthStatus(
        status=overall_status,
        uptime_seconds=uptime,
        version=settings.app_version,
        environment=settings.environment.value,
        checks=checks,
    )


@router.get(
    settings.readiness_check_path,
    response_model=ReadinessStatus,
    responses={
        200: {"description": "Application is ready"},
        503: {"description": "Application is not ready"},
    },
    summary="Readiness Check",
    description="Kubernetes readiness probe endpoint",
)
def readiness_check(request: Request, response: Response) -> ReadinessStatus:
    """Ready once the registry is loaded and the store answers."""
    checks = {
        "rbac": check_rbac(request)["status"] == "healthy",
        "redis": check_redis(request)["status"] == "healthy",
    }

    is_ready = all(checks.values())

    if not is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        message = "Application not ready"
        logger.warning("Readiness check failed", extra={"checks": checks})
    else:
        message = "Application ready to receive traffic"

    return ReadinessStatus(ready=is_ready, checks=checks, message=message)
