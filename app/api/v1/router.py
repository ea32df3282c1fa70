"""API v1 router module."""

from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from app.api.v1.regions import router as regions_router
from app.api.v1.users import router as users_router
from app.core.config import settings
from app.core.db import ping_database

router = APIRouter(default_response_class=JSONResponse)

router.include_router(users_router)
router.include_router(regions_router)


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest().decode("utf-8"),
        media_type=CONTENT_TYPE_LATEST,
    )


@router.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint.

    Returns
    -------
        Dict containing health status information
    """
    return {
        "status": "healthy",
        "version": settings.version,
        "correlation_id": request.state.correlation_id,
    }


@router.get("/health/db")
async def db_health_check(request: Request) -> dict[str, Any]:
    """
    Database health check endpoint.

    Returns
    -------
        Dict containing database health status information
    """
    healthy = await ping_database()
    return {
        "status": "healthy" if healthy else "unhealthy",
        "database": settings.MONGODB_DATABASE,
        "transactions": settings.MONGODB_TRANSACTIONS,
        "correlation_id": request.state.correlation_id,
    }
