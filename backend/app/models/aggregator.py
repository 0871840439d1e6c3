"""Aggregator models for the admin API.

Response models for manual triggers, scheduler status, and the source
registry listing.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TriggerResponse(BaseModel):
    """Acknowledgement returned by the manual trigger."""

    status: str = Field(..., description="'triggered'")
    message: str


class SourceReportResponse(BaseModel):
    source_name: str
    kind: str
    fetched: int = 0
    persisted: int = 0
    duplicates: int = 0
    invalid: int = 0
    failed: int = 0
    error: Optional[str] = None


class CycleSummaryResponse(BaseModel):
    """Outcome of the most recent aggregation cycle."""

    cycle_id: str
    trigger: str  # scheduled, manual, startup
    started_at: datetime
    finished_at: Optional[datetime] = None
    sources_attempted: int = 0
    sources_failed: int = 0
    items_fetched: int = 0
    items_added: int = 0
    items_skipped: int = 0
    errors: List[str] = Field(default_factory=list)
    sources: List[SourceReportResponse] = Field(default_factory=list)


class AggregatorStatusResponse(BaseModel):
    scheduler_running: bool
    cron: str
    next_run: Optional[datetime] = None
    cycle_running: bool
    last_cycle: Optional[CycleSummaryResponse] = None


class SourceDescriptorResponse(BaseModel):
    name: str
    kind: str
    endpoint: str
    api_format: Optional[str] = None
    category: str
    default_location: str
