"""Shared dependencies for the aggregator API routers.

Centralises access to the process-wide :class:`AggregatorScheduler` and
small utility helpers so that every router module can
``from app.deps import …`` without importing ``main``.
"""

import logging

from fastapi import HTTPException, Request, status

from app.scheduler import AggregatorScheduler

logger = logging.getLogger(__name__)


def _safe_error(operation: str, e: Exception) -> str:
    """Log the full exception but return a safe message without internal details.

    This prevents leaking stack traces, file paths, or database internals
    to API consumers while preserving full diagnostics in server logs.
    """
    logger.exception("Error during %s", operation)
    return f"{operation} failed. Please try again or contact support."


def get_aggregator_scheduler(request: Request) -> AggregatorScheduler:
    """Return the scheduler attached to the app during startup.

    Raises 503 when storage is not configured and no scheduler exists.
    """
    scheduler = getattr(request.app.state, "aggregator_scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Aggregator is not configured (DATABASE_URL missing)",
        )
    return scheduler
