"""
Storage access for aggregated opportunities.

The aggregator needs exactly two storage operations:

- ``exists(external_apply_url)``: is there already a row with this URL?
- ``insert(...)``: write one new row.

:class:`OpportunityStore` is the contract; :class:`SqlOpportunityStore`
implements it over the platform's async SQLAlchemy engine.  Each call uses
its own short-lived session, so a failed insert never poisons the next item.

Usage:
    from app.database import async_session_factory
    from app.opportunity_store import SqlOpportunityStore

    store = SqlOpportunityStore(async_session_factory)
    if not await store.exists(url):
        await store.insert(title="...", ...)
"""

import logging
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.db.opportunity import Opportunity

logger = logging.getLogger(__name__)


class OpportunityStore(Protocol):
    """Storage contract consumed by the aggregation pipeline."""

    async def exists(self, external_apply_url: str) -> bool:
        ...

    async def insert(
        self,
        *,
        title: str,
        type: str,
        company: str,
        company_id: str,
        location: str,
        description: str,
        external_apply_url: str,
        application_method: str,
        status: str,
        details: Dict[str, Any],
    ) -> bool:
        """Insert one row; return False if the URL was already taken."""
        ...


def build_insert_statement(values: Dict[str, Any]):
    """``INSERT ... ON CONFLICT DO NOTHING RETURNING id`` for one opportunity.

    The conflict clause has no target, so any unique violation (the URL
    index or another platform constraint) is skipped rather than raised.
    """
    return (
        pg_insert(Opportunity)
        .values({getattr(Opportunity, key): value for key, value in values.items()})
        .on_conflict_do_nothing()
        .returning(Opportunity.id)
    )


class SqlOpportunityStore:
    """OpportunityStore backed by the ``opportunities`` table."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]]):
        if session_factory is None:
            raise RuntimeError(
                "Database not configured. Set DATABASE_URL environment variable."
            )
        self.session_factory = session_factory

    async def exists(self, external_apply_url: str) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(
                select(Opportunity.id)
                .where(Opportunity.external_apply_url == external_apply_url)
                .limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def insert(
        self,
        *,
        title: str,
        type: str,
        company: str,
        company_id: str,
        location: str,
        description: str,
        external_apply_url: str,
        application_method: str,
        status: str,
        details: Dict[str, Any],
    ) -> bool:
        stmt = build_insert_statement(
            {
                "title": title,
                "type": type,
                "company": company,
                "company_id": company_id,
                "location": location,
                "description": description,
                "external_apply_url": external_apply_url,
                "application_method": application_method,
                "status": status,
                "details": details,
            }
        )

        async with self.session_factory() as db:
            try:
                result = await db.execute(stmt)
                new_id = result.scalar_one_or_none()
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if new_id is None:
            logger.debug(f"Insert skipped, URL already stored: {external_apply_url}")
            return False
        return True
