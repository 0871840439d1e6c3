"""Aggregator admin endpoints -- manual runs, status, and source listing.

The manual trigger starts an aggregation cycle in the background and returns
immediately.  The response confirms that the cycle was dispatched but does
not wait for it; results show up in the logs and in the status endpoint.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth import require_admin
from app.deps import _safe_error, get_aggregator_scheduler
from app.models.aggregator import (
    AggregatorStatusResponse,
    CycleSummaryResponse,
    SourceDescriptorResponse,
    TriggerResponse,
)
from app.scheduler import AggregatorScheduler
from app.source_registry import get_sources

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# POST /admin/aggregator/run
# ---------------------------------------------------------------------------


@router.post(
    "/admin/aggregator/run",
    response_model=TriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def trigger_aggregation(
    scheduler: AggregatorScheduler = Depends(get_aggregator_scheduler),
    current_user: dict = Depends(require_admin),
):
    """Manually start one aggregation cycle.

    The cycle runs in the background so the API returns immediately.
    Returns 409 if a cycle (scheduled or manual) is already running.
    """
    try:
        started = scheduler.trigger_now(trigger="manual")
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_safe_error("aggregation trigger", e),
        ) from e

    if not started:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An aggregation cycle is already running.",
        )

    logger.info("Aggregation cycle manually triggered by user %s", current_user["id"])

    return TriggerResponse(
        status="triggered",
        message="Aggregation started in background.",
    )


# ---------------------------------------------------------------------------
# GET /admin/aggregator/status
# ---------------------------------------------------------------------------


@router.get("/admin/aggregator/status", response_model=AggregatorStatusResponse)
async def aggregation_status(
    scheduler: AggregatorScheduler = Depends(get_aggregator_scheduler),
    _current_user: dict = Depends(require_admin),
):
    """Scheduler state plus the summary of the most recent cycle."""
    last = scheduler.last_summary
    return AggregatorStatusResponse(
        scheduler_running=scheduler.running,
        cron=scheduler.cron,
        next_run=scheduler.next_run_time,
        cycle_running=scheduler.is_cycle_running,
        last_cycle=CycleSummaryResponse(**last.to_dict()) if last else None,
    )


# ---------------------------------------------------------------------------
# GET /admin/aggregator/sources
# ---------------------------------------------------------------------------


@router.get(
    "/admin/aggregator/sources",
    response_model=List[SourceDescriptorResponse],
)
async def list_sources(
    _current_user: dict = Depends(require_admin),
):
    """List configured sources in processing order."""
    return [
        SourceDescriptorResponse(
            name=s.name,
            kind=s.kind.value,
            endpoint=s.endpoint,
            api_format=s.api_format.value if s.api_format else None,
            category=s.category,
            default_location=s.default_location,
        )
        for s in get_sources()
    ]
