"""
Health check endpoints.

We provide two endpoints:
- /health: Basic liveness check (is the process running?)
- /health/ready: Readiness check (can we serve traffic?)

The distinction matters in orchestration systems like Kubernetes
where liveness and readiness have different behaviors.
"""

import logging
from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ...config.settings import load_storage_config
from ...core.storage.errors import ConfigurationError
from ..dependencies import SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """
    Health check response.

    Standardized format makes it easy for monitoring tools to parse.
    """
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    """Individual readiness check result."""
    name: str
    status: str  # "ok" or "error"
    error: str | None = None


class ReadinessResponse(BaseModel):
    """Readiness check response with details."""
    status: str  # "ready" or "not_ready"
    version: str
    checks: list[ReadinessCheck]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """
    Liveness check - is the process alive?

    This endpoint should be very fast and not check external dependencies.
    """
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "mock_mode": {
                "r2": settings.r2_mock_mode,
                "legacy": settings.legacy_mock_mode,
            }
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Returns 200 if the service can sign URLs. Returns 503 otherwise.",
    responses={
        503: {
            "description": "Service not ready",
            "model": ReadinessResponse,
        }
    },
)
async def readiness_check(settings: SettingsDep, response: Response) -> ReadinessResponse:
    """
    Readiness check - can we serve traffic?

    Signing is pure computation, so the only thing that can stop us is
    configuration: the R2 credentials must be complete. The legacy store
    is reported but does not block readiness, since only old references
    depend on it.
    """
    checks: list[ReadinessCheck] = []
    all_ok = True

    if settings.r2_mock_mode:
        checks.append(ReadinessCheck(name="storage", status="ok", error="mock mode"))
    else:
        try:
            load_storage_config(settings)
            checks.append(ReadinessCheck(name="storage", status="ok"))
        except ConfigurationError as e:
            checks.append(ReadinessCheck(name="storage", status="error", error=str(e)))
            all_ok = False

    if settings.legacy_mock_mode:
        checks.append(ReadinessCheck(name="legacy_store", status="ok", error="mock mode"))
    elif settings.legacy_store_url:
        checks.append(ReadinessCheck(name="legacy_store", status="ok"))
    else:
        checks.append(ReadinessCheck(
            name="legacy_store",
            status="error",
            error="LEGACY_STORE_URL not set; legacy ids will resolve to null",
        ))

    if not all_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Readiness check failed",
            extra={
                "checks": [
                    {"name": c.name, "status": c.status, "error": c.error}
                    for c in checks
                ]
            }
        )

    return ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        version=__version__,
        checks=checks,
    )
