"""
RSS/Atom feed fetcher for opportunity sources.

This module fetches one feed endpoint with a bounded timeout, parses it with
feedparser, and maps each entry to a :class:`NormalizedListing`.  Feeds of
this kind rarely expose a separate company field, so the company is a
placeholder derived from the source name.

Usage:
    from app.source_fetchers.feed_fetcher import FeedFetcher

    result = await FeedFetcher(timeout=20).fetch(source)
    for listing in result.listings:
        print(listing.title, listing.external_apply_url)
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
import feedparser

from app.aggregator_errors import SourceFetchError
from app.source_registry import SourceDescriptor, SourceKind

from .base import BaseFetcher, NormalizedListing, SourceFetchResult, clean_field

logger = logging.getLogger(__name__)

FEED_HEADERS = {
    "User-Agent": "Yenza-OpportunityAggregator/1.0",
    "Accept": "application/rss+xml, application/atom+xml, application/xml, text/xml, */*",
}

COMPANY_PLACEHOLDER_PREFIX = "Aggregated: "


# ============================================================================
# Helper Functions
# ============================================================================

def _extract_raw_description(entry: Dict[str, Any]) -> str:
    """
    Pick the richest body available on a feed entry.

    Tries the Atom content array first, then summary and description.
    HTML is left in place for the content normalizer.
    """
    content_list = entry.get("content", [])
    if content_list and isinstance(content_list, list):
        for content_item in content_list:
            if isinstance(content_item, dict) and content_item.get("value"):
                return content_item["value"]

    return entry.get("summary", "") or entry.get("description", "") or ""


def parse_feed_entries(
    source: SourceDescriptor, body: str, max_items: int = 50
) -> List[NormalizedListing]:
    """
    Parse a feed document into listings.

    Entries without a link are still returned (with an empty URL) so the
    cycle can record them as invalid rather than silently dropping them.

    Raises:
        SourceFetchError: if the document is not a readable feed
    """
    feed = feedparser.parse(body)

    if feed.bozo:
        bozo_exception = str(feed.bozo_exception) if feed.bozo_exception else "Unknown parsing error"
        if not feed.entries:
            raise SourceFetchError(f"Feed parsing failed: {bozo_exception}", source.name)
        # feedparser often succeeds partially
        logger.warning(f"Feed parsing warning for {source.name}: {bozo_exception}")

    listings = []
    for entry in feed.entries[:max_items]:
        listings.append(
            NormalizedListing(
                title=clean_field(entry.get("title")),
                company=COMPANY_PLACEHOLDER_PREFIX + source.name,
                location=source.default_location,
                raw_description=_extract_raw_description(entry),
                external_apply_url=(entry.get("link") or "").strip(),
                source_name=source.name,
            )
        )
    return listings


# ============================================================================
# Fetcher
# ============================================================================

class FeedFetcher(BaseFetcher):
    """Fetcher for ``feed`` sources."""

    kind = SourceKind.FEED

    async def fetch(
        self,
        source: SourceDescriptor,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> SourceFetchResult:
        logger.debug(f"Fetching feed: {source.name} ({source.endpoint})")

        close_session = session is None
        if session is None:
            session = aiohttp.ClientSession()

        try:
            async with session.get(
                source.endpoint,
                headers=FEED_HEADERS,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                allow_redirects=True,
            ) as response:
                if response.status != 200:
                    raise SourceFetchError(
                        f"HTTP {response.status}: {response.reason}", source.name
                    )
                body = await response.text()

            listings = parse_feed_entries(source, body, max_items=self.max_items)
            logger.info(f"[Aggregator] Fetched {len(listings)} items from {source.name}")
            return SourceFetchResult(
                source_name=source.name, success=True, listings=listings
            )

        except SourceFetchError as e:
            logger.warning(f"[Aggregator] Feed error ({source.name}): {e.message}")
            return SourceFetchResult.failed(source.name, e.message)

        except asyncio.TimeoutError:
            error_msg = f"Timeout after {self.timeout}s"
            logger.warning(f"[Aggregator] Feed timeout ({source.name}): {error_msg}")
            return SourceFetchResult.failed(source.name, error_msg)

        except aiohttp.ClientError as e:
            error_msg = f"Client error: {str(e)}"
            logger.warning(f"[Aggregator] Feed client error ({source.name}): {error_msg}")
            return SourceFetchResult.failed(source.name, error_msg)

        except Exception as e:
            error_msg = f"Unexpected error: {str(e)}"
            logger.error(f"[Aggregator] Feed fetch failed ({source.name}): {error_msg}")
            return SourceFetchResult.failed(source.name, error_msg)

        finally:
            if close_session:
                await session.close()
