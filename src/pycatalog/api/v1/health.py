"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from pycatalog.core.config import settings
from pycatalog.core.logging import get_logger
from pycatalog.db.session import get_db_context

logger = get_logger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns application status without checking dependencies.
    """
    return HealthResponse(
        status="healthy",
        environment=settings.environment,
        version=settings.app_version,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """Check that the record and formula database is reachable."""
    try:
        async with get_db_context() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        return ReadinessResponse(status="unhealthy", database=f"error: {e}")

    return ReadinessResponse(status="ready", database="connected")
