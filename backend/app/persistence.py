"""
Persister for aggregated opportunities.

Writes one deduplicated, normalized listing to storage with the fixed values
every aggregated opportunity carries:

    type="Remote", companyId="aggregator", applicationMethod="external",
    status="approved", details={"source": ..., "category": ...}

The per-source category is recorded in ``details`` only; it is never inferred
from the listing content.
"""

import logging
from typing import Any, Dict, Optional

from app.aggregator_errors import PersistenceError
from app.opportunity_store import OpportunityStore
from app.source_fetchers.base import NormalizedListing
from app.source_registry import DEFAULT_LOCATION

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fixed record values
# ---------------------------------------------------------------------------
OPPORTUNITY_TYPE = "Remote"
AGGREGATOR_COMPANY_ID = "aggregator"
APPLICATION_METHOD = "external"
STATUS_APPROVED = "approved"


def build_opportunity_values(
    listing: NormalizedListing,
    description: str,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """Map a listing and its cleaned description to storage insert values."""
    details: Dict[str, Any] = {"source": listing.source_name}
    if category:
        details["category"] = category

    return {
        "title": listing.title,
        "type": OPPORTUNITY_TYPE,
        "company": listing.company or listing.source_name,
        "company_id": AGGREGATOR_COMPANY_ID,
        "location": listing.location or DEFAULT_LOCATION,
        "description": description or "",
        "external_apply_url": listing.external_apply_url,
        "application_method": APPLICATION_METHOD,
        "status": STATUS_APPROVED,
        "details": details,
    }


class Persister:
    """Inserts new listings into the opportunity store."""

    def __init__(self, store: OpportunityStore):
        self.store = store

    async def persist(
        self,
        listing: NormalizedListing,
        description: str,
        category: Optional[str] = None,
    ) -> bool:
        """
        Insert *listing*.

        Returns:
            True if a row was written, False if storage already held the URL
            (another cycle won the race)

        Raises:
            PersistenceError: if the insert fails
        """
        values = build_opportunity_values(listing, description, category)
        try:
            inserted = await self.store.insert(**values)
        except Exception as exc:
            raise PersistenceError(
                f"Insert failed: {exc}",
                source_name=listing.source_name,
                external_apply_url=listing.external_apply_url,
            ) from exc

        if inserted:
            logger.info(f"[Aggregator] Saved: {listing.title[:30]}...")
        return bool(inserted)
