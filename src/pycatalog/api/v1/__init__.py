"""API v1 routes."""

from fastapi import APIRouter

from pycatalog.api.v1 import formulas, health, records

router = APIRouter()

router.include_router(health.router, tags=["health"])
router.include_router(formulas.router, prefix="/formulas", tags=["formulas"])
router.include_router(records.router, prefix="/records", tags=["records"])

__all__ = ["router"]
