"""
Aggregator API Models

Pydantic models for API serialization.
"""

from .aggregator import (
    AggregatorStatusResponse,
    CycleSummaryResponse,
    SourceDescriptorResponse,
    SourceReportResponse,
    TriggerResponse,
)

__all__ = [
    "AggregatorStatusResponse",
    "CycleSummaryResponse",
    "SourceDescriptorResponse",
    "SourceReportResponse",
    "TriggerResponse",
]
