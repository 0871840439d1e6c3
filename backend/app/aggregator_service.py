"""
Opportunity aggregation cycle.

One cycle walks every configured source in registry order, fetches its
listings, and pushes each listing through:

    validate -> dedup gate -> normalize description -> persist

Every step is isolated.  A failing source is recorded and the cycle moves on
to the next source; a failing item is recorded and the cycle moves on to the
next item.  The cycle itself always completes and returns a
:class:`CycleSummary` of what happened.

Usage:
    from app.aggregator_service import AggregatorService

    service = AggregatorService(store)
    summary = await service.run_cycle(trigger="manual")
    print(summary.items_added)
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import aiohttp

from app.aggregator_errors import ItemNormalizationError, PersistenceError
from app.config import AggregatorSettings, get_settings
from app.content_normalizer import normalize_description
from app.deduplication import DeduplicationGate
from app.opportunity_store import OpportunityStore
from app.persistence import Persister
from app.source_fetchers.base import (
    BaseFetcher,
    NormalizedListing,
    SourceFetchResult,
    build_fetchers,
    get_fetcher,
)
from app.source_registry import SourceDescriptor, SourceKind, get_sources

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class ItemStatus(str, Enum):
    PERSISTED = "persisted"
    DUPLICATE = "duplicate"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass
class ItemOutcome:
    """What happened to one listing."""

    status: ItemStatus
    external_apply_url: str
    title: str = ""
    error: Optional[str] = None


@dataclass
class SourceReport:
    """Per-source tally for one cycle."""

    source_name: str
    kind: str
    fetched: int = 0
    persisted: int = 0
    duplicates: int = 0
    invalid: int = 0
    failed: int = 0
    error: Optional[str] = None
    item_errors: List[str] = field(default_factory=list)

    @property
    def fetch_failed(self) -> bool:
        return self.error is not None

    def record(self, outcome: ItemOutcome) -> None:
        if outcome.status == ItemStatus.PERSISTED:
            self.persisted += 1
        elif outcome.status == ItemStatus.DUPLICATE:
            self.duplicates += 1
        elif outcome.status == ItemStatus.INVALID:
            self.invalid += 1
        else:
            self.failed += 1
        if outcome.error:
            self.item_errors.append(outcome.error)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_name": self.source_name,
            "kind": self.kind,
            "fetched": self.fetched,
            "persisted": self.persisted,
            "duplicates": self.duplicates,
            "invalid": self.invalid,
            "failed": self.failed,
            "error": self.error,
        }


@dataclass
class CycleSummary:
    """Structured result of one aggregation cycle."""

    cycle_id: str
    trigger: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    sources: List[SourceReport] = field(default_factory=list)

    @property
    def sources_attempted(self) -> int:
        return len(self.sources)

    @property
    def sources_failed(self) -> int:
        return sum(1 for s in self.sources if s.fetch_failed)

    @property
    def items_fetched(self) -> int:
        return sum(s.fetched for s in self.sources)

    @property
    def items_added(self) -> int:
        return sum(s.persisted for s in self.sources)

    @property
    def items_skipped(self) -> int:
        return sum(s.duplicates + s.invalid for s in self.sources)

    @property
    def errors(self) -> List[str]:
        errors = []
        for s in self.sources:
            if s.error:
                errors.append(f"{s.source_name}: {s.error}")
            errors.extend(f"{s.source_name}: {e}" for e in s.item_errors)
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "trigger": self.trigger,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "sources_attempted": self.sources_attempted,
            "sources_failed": self.sources_failed,
            "items_fetched": self.items_fetched,
            "items_added": self.items_added,
            "items_skipped": self.items_skipped,
            "errors": self.errors,
            "sources": [s.to_dict() for s in self.sources],
        }


def _validate_listing(listing: NormalizedListing) -> None:
    """Reject listings that cannot be stored safely.

    Raises:
        ItemNormalizationError: on a missing title or a missing/non-http URL
    """
    url = listing.external_apply_url
    if not url:
        raise ItemNormalizationError(
            "Missing external apply URL", source_name=listing.source_name
        )
    if not url.startswith(("http://", "https://")):
        raise ItemNormalizationError(
            f"External apply URL is not http(s): {url[:100]}",
            source_name=listing.source_name,
            external_apply_url=url,
        )
    if not listing.title:
        raise ItemNormalizationError(
            "Missing title",
            source_name=listing.source_name,
            external_apply_url=url,
        )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AggregatorService:
    """Runs aggregation cycles against an opportunity store."""

    def __init__(
        self,
        store: OpportunityStore,
        sources: Optional[Sequence[SourceDescriptor]] = None,
        fetchers: Optional[Dict[SourceKind, BaseFetcher]] = None,
        settings: Optional[AggregatorSettings] = None,
        http_session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.sources = tuple(sources) if sources is not None else get_sources()
        self.fetchers = fetchers or build_fetchers(
            timeout=self.settings.fetch_timeout_seconds,
            max_items=self.settings.max_items_per_source,
            api_max_retries=self.settings.api_max_retries,
        )
        self.persister = Persister(store)
        self.http_session_factory = http_session_factory
        self.last_summary: Optional[CycleSummary] = None

    async def run_cycle(self, trigger: str = "scheduled") -> CycleSummary:
        """
        Run one full pass over all sources.

        Args:
            trigger: "scheduled" or "manual", recorded on the summary

        Returns:
            CycleSummary; the cycle always completes, even with zero new records
        """
        summary = CycleSummary(
            cycle_id=str(uuid.uuid4()),
            trigger=trigger,
            started_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"[Aggregator] Starting {trigger} cycle {summary.cycle_id} "
            f"over {len(self.sources)} sources"
        )

        gate = DeduplicationGate(self.store)

        async with self.http_session_factory() as session:
            for source in self.sources:
                report = await self._process_source(source, session, gate)
                summary.sources.append(report)

        summary.finished_at = datetime.now(timezone.utc)
        self.last_summary = summary

        duration = (summary.finished_at - summary.started_at).total_seconds()
        logger.info(
            f"[Aggregator] Cycle complete in {duration:.1f}s: "
            f"{summary.items_added} added, {summary.items_skipped} skipped, "
            f"{len(summary.errors)} errors "
            f"({summary.sources_failed}/{summary.sources_attempted} sources failed)"
        )
        return summary

    async def _process_source(
        self,
        source: SourceDescriptor,
        session: aiohttp.ClientSession,
        gate: DeduplicationGate,
    ) -> SourceReport:
        report = SourceReport(source_name=source.name, kind=source.kind.value)

        try:
            fetcher = get_fetcher(source, self.fetchers)
            result: SourceFetchResult = await fetcher.fetch(source, session)
        except Exception as e:
            # Fetchers report their own failures; this only catches wiring bugs
            logger.exception(f"[Aggregator] Fetch crashed ({source.name}): {e}")
            report.error = f"Unexpected error: {e}"
            return report

        if not result.success:
            report.error = result.error_message or "Fetch failed"
            return report

        report.fetched = len(result.listings)
        for listing in result.listings:
            outcome = await self._process_item(listing, source, gate)
            report.record(outcome)

        logger.info(
            f"[Aggregator] {source.name}: {report.fetched} fetched, "
            f"{report.persisted} added, {report.duplicates} duplicates, "
            f"{report.invalid} invalid, {report.failed} failed"
        )
        return report

    async def _process_item(
        self,
        listing: NormalizedListing,
        source: SourceDescriptor,
        gate: DeduplicationGate,
    ) -> ItemOutcome:
        url = listing.external_apply_url
        try:
            _validate_listing(listing)

            if await gate.is_duplicate(url):
                return ItemOutcome(ItemStatus.DUPLICATE, url, listing.title)

            description = normalize_description(listing.raw_description)
            inserted = await self.persister.persist(listing, description, source.category)
            gate.mark_seen(url)

        except ItemNormalizationError as e:
            logger.warning(f"[Aggregator] Skipping invalid item from {source.name}: {e.message}")
            return ItemOutcome(ItemStatus.INVALID, url, listing.title, error=e.message)

        except PersistenceError as e:
            logger.error(f"[Aggregator] DB error for {listing.title!r} ({url}): {e.message}")
            return ItemOutcome(ItemStatus.FAILED, url, listing.title, error=e.message)

        except Exception as e:
            logger.exception(f"[Aggregator] Unexpected error for {listing.title!r} ({url})")
            return ItemOutcome(ItemStatus.FAILED, url, listing.title, error=str(e))

        if not inserted:
            return ItemOutcome(ItemStatus.DUPLICATE, url, listing.title)
        return ItemOutcome(ItemStatus.PERSISTED, url, listing.title)
