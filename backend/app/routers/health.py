"""Health-check router."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.source_registry import get_sources

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Health check"""
    return {"status": "ok", "message": "Opportunity Aggregator API is running"}


@router.get("/api/v1/health")
async def health_check(request: Request):
    """Detailed health check with storage and scheduler state."""
    scheduler = getattr(request.app.state, "aggregator_scheduler", None)

    degraded = []
    if scheduler is None:
        degraded.append("storage")

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "storage": "configured" if scheduler is not None else "unconfigured",
            "scheduler": "running" if scheduler is not None and scheduler.running else "stopped",
        },
        "sources": len(get_sources()),
        "degraded": degraded if degraded else None,
        "mode": "full" if not degraded else "degraded",
    }
