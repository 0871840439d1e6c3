"""Admin router package -- aggregates all admin sub-routers."""

from fastapi import APIRouter

router = APIRouter(prefix="/api/v1", tags=["admin"])

from .aggregator_admin import router as aggregator_admin_router

router.include_router(aggregator_admin_router)
