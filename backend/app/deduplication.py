"""
URL-based deduplication for aggregated listings.

The external apply URL is the only dedup key.  A listing is a duplicate if:

1. **Already stored**: a row with the same URL exists in ``opportunities``.
2. **Stored this cycle**: an earlier listing in the same cycle with the same
   URL was stored (e.g. the posting appears in two feeds).  A copy whose
   check or insert failed does not count, so a later copy still gets a try.

Stored rows are never updated; a duplicate is simply skipped, even when its
title or description has changed upstream.

Usage
-----
    from app.deduplication import DeduplicationGate

    gate = DeduplicationGate(store)
    if await gate.is_duplicate(listing.external_apply_url):
        ...  # skip
    ...  # insert
    gate.mark_seen(listing.external_apply_url)
"""

import logging
from typing import Set

from app.aggregator_errors import PersistenceError
from app.opportunity_store import OpportunityStore

logger = logging.getLogger(__name__)


class DeduplicationGate:
    """Per-cycle duplicate check.  Create a new gate for every cycle."""

    def __init__(self, store: OpportunityStore):
        self.store = store
        self._seen: Set[str] = set()

    async def is_duplicate(self, external_apply_url: str) -> bool:
        """
        Return True if *external_apply_url* is already stored or was stored
        earlier in this cycle.

        Raises:
            PersistenceError: if the storage lookup fails
        """
        if external_apply_url in self._seen:
            return True

        try:
            exists = await self.store.exists(external_apply_url)
        except Exception as exc:
            raise PersistenceError(
                f"Existence check failed: {exc}",
                external_apply_url=external_apply_url,
            ) from exc

        if exists:
            self._seen.add(external_apply_url)
        return exists

    def mark_seen(self, external_apply_url: str) -> None:
        """Record that storage now holds *external_apply_url*.

        Only call this after an insert succeeded or was rejected as a
        conflict; a failed attempt must leave later copies free to retry.
        """
        self._seen.add(external_apply_url)
