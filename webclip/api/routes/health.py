"""
Health Routes
=============

FastAPI routes for health check and service info endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request

from webclip.core.pipeline import ClipPipeline
from webclip.models.schemas import GatewayStatus, HealthStatus

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthStatus)
async def health_check(request: Request) -> HealthStatus:
    """Report renderer readiness and gateway occupancy."""
    pipeline: ClipPipeline = request.app.state.clip_pipeline
    gateway = pipeline.gateway

    return HealthStatus(
        status="healthy" if pipeline.renderer.is_ready else "degraded",
        version=request.app.state.settings.app_version,
        renderer=pipeline.renderer.is_ready,
        gateway=GatewayStatus(
            capacity=gateway.capacity,
            available=gateway.available,
            in_flight=gateway.in_flight,
        ),
        presets=len(pipeline.presets),
    )


@router.get("/")
async def root(request: Request) -> Dict[str, Any]:
    """Service info."""
    settings = request.app.state.settings
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "endpoints": {
            "clip": "/v1/clip",
            "health": "/health",
        },
    }
