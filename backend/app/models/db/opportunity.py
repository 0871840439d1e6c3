"""Opportunity ORM model.

Tables
------
- opportunities  (all platform opportunities; aggregated ones have
  ``"companyId" = 'aggregator'``)

Column names follow the platform's existing camelCase schema, so several
attributes map to a quoted column name.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.db.base import Base

__all__ = ["Opportunity"]


class Opportunity(Base):
    """A published opportunity (job, gig, internship, event, course)."""

    __tablename__ = "opportunities"
    __table_args__ = (
        # Closes the race between overlapping cycles or processes
        Index(
            "uq_opportunities_external_apply_url",
            "externalApplyUrl",
            unique=True,
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    company_id: Mapped[Optional[str]] = mapped_column(
        "companyId", String(255), nullable=True
    )
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(
        String(50), server_default="active", nullable=True
    )
    application_method: Mapped[Optional[str]] = mapped_column(
        "applicationMethod", String(50), server_default="platform", nullable=True
    )
    external_apply_url: Mapped[Optional[str]] = mapped_column(
        "externalApplyUrl", Text, nullable=True
    )
    details: Mapped[Optional[dict]] = mapped_column(
        JSONB, server_default="{}", nullable=True
    )

    created_at: Mapped[Optional[datetime]] = mapped_column(
        "createdAt", DateTime, server_default=func.now(), nullable=True
    )
