"""
JSON API fetcher for opportunity sources.

Each API source names the payload layout it speaks through
``SourceDescriptor.api_format``.  The fetcher performs a GET with a bounded
timeout, retries rate-limit and server errors with exponential backoff, and
hands the decoded body to the matching payload parser.

Supported layouts:
- ``remotive``:  ``{"jobs": [...]}``
- ``remoteok``:  top-level list whose first element is a legal notice
- ``reliefweb``: ``{"data": [{"fields": {...}, "href": ...}]}``

Usage:
    from app.source_fetchers.api_fetcher import ApiFetcher

    result = await ApiFetcher(timeout=20).fetch(source)
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from app.aggregator_errors import SourceFetchError
from app.source_registry import ApiFormat, SourceDescriptor, SourceKind

from .base import BaseFetcher, NormalizedListing, SourceFetchResult, clean_field

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration
# ============================================================================

# Some job boards reject non-browser clients outright
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# Base delay between retries in seconds (doubles each attempt)
RETRY_BASE_DELAY = 1.0

RELIEFWEB_DEFAULT_TITLE = "Relief Job"
RELIEFWEB_DEFAULT_COMPANY = "UN / NGO"
RELIEFWEB_DEFAULT_DESCRIPTION = "View details on official site."


# ============================================================================
# Payload Parsers
# ============================================================================

def _require_list(value: Any, source: SourceDescriptor, field_name: str) -> List[Any]:
    if not isinstance(value, list):
        raise SourceFetchError(
            f"Expected a list in '{field_name}', got {type(value).__name__}",
            source.name,
        )
    return value


def _location_or_default(value: Any, source: SourceDescriptor) -> str:
    location = clean_field(value, max_length=255)
    return location or source.default_location


def _parse_remotive(source: SourceDescriptor, data: Any) -> List[NormalizedListing]:
    if not isinstance(data, dict):
        raise SourceFetchError("Remotive payload is not an object", source.name)
    postings = _require_list(data.get("jobs"), source, "jobs")

    listings = []
    for item in postings:
        if not isinstance(item, dict):
            continue
        listings.append(
            NormalizedListing(
                title=clean_field(item.get("title")),
                company=clean_field(item.get("company_name"), max_length=255),
                location=_location_or_default(
                    item.get("candidate_required_location"), source
                ),
                raw_description=item.get("description") or "",
                external_apply_url=clean_field(item.get("url"), max_length=2000),
                source_name=source.name,
            )
        )
    return listings


def _parse_remoteok(source: SourceDescriptor, data: Any) -> List[NormalizedListing]:
    postings = _require_list(data, source, "<root>")

    listings = []
    for item in postings:
        # The first element is RemoteOK's legal/attribution notice
        if not isinstance(item, dict) or "legal" in item:
            continue
        listings.append(
            NormalizedListing(
                title=clean_field(item.get("position")),
                company=clean_field(item.get("company"), max_length=255),
                location=_location_or_default(item.get("location"), source),
                raw_description=item.get("description") or "",
                external_apply_url=clean_field(item.get("url"), max_length=2000),
                source_name=source.name,
            )
        )
    return listings


def _parse_reliefweb(source: SourceDescriptor, data: Any) -> List[NormalizedListing]:
    if not isinstance(data, dict):
        raise SourceFetchError("ReliefWeb payload is not an object", source.name)
    postings = _require_list(data.get("data"), source, "data")

    listings = []
    for item in postings:
        if not isinstance(item, dict):
            continue
        fields = item.get("fields") or {}
        organisations = fields.get("source") or []
        company = ""
        if organisations and isinstance(organisations[0], dict):
            company = clean_field(organisations[0].get("name"), max_length=255)

        listings.append(
            NormalizedListing(
                title=clean_field(fields.get("title")) or RELIEFWEB_DEFAULT_TITLE,
                company=company or RELIEFWEB_DEFAULT_COMPANY,
                location=source.default_location,
                raw_description=fields.get("body") or RELIEFWEB_DEFAULT_DESCRIPTION,
                external_apply_url=clean_field(
                    fields.get("url") or item.get("href"), max_length=2000
                ),
                source_name=source.name,
            )
        )
    return listings


PAYLOAD_PARSERS: Dict[ApiFormat, Callable[[SourceDescriptor, Any], List[NormalizedListing]]] = {
    ApiFormat.REMOTIVE: _parse_remotive,
    ApiFormat.REMOTEOK: _parse_remoteok,
    ApiFormat.RELIEFWEB: _parse_reliefweb,
}


def parse_api_payload(
    source: SourceDescriptor, data: Any, max_items: int = 50
) -> List[NormalizedListing]:
    """
    Map a decoded JSON body to listings using the source's payload layout.

    Raises:
        SourceFetchError: if the layout is unknown or the body has the wrong shape
    """
    parser = PAYLOAD_PARSERS.get(source.api_format)
    if parser is None:
        raise SourceFetchError(f"Unsupported API format: {source.api_format}", source.name)
    return parser(source, data)[:max_items]


# ============================================================================
# Fetcher
# ============================================================================

class ApiFetcher(BaseFetcher):
    """Fetcher for ``api`` sources."""

    kind = SourceKind.API

    def __init__(self, timeout: float = 20, max_items: int = 50, max_retries: int = 2):
        super().__init__(timeout=timeout, max_items=max_items)
        self.max_retries = max(1, max_retries)

    async def _get_json(
        self, session: aiohttp.ClientSession, source: SourceDescriptor
    ) -> Any:
        """
        GET the source endpoint and decode its JSON body.

        Retries 429 and 5xx responses; any other non-200 status fails at once.

        Raises:
            SourceFetchError: on a non-success status or an undecodable body
            asyncio.TimeoutError, aiohttp.ClientError: after the final attempt
        """
        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                async with session.get(
                    source.endpoint,
                    headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status == 200:
                        try:
                            return await response.json(content_type=None)
                        except ValueError as exc:
                            raise SourceFetchError(
                                f"Malformed JSON body: {exc}", source.name
                            ) from exc

                    if (response.status == 429 or response.status >= 500) and not last_attempt:
                        wait_time = RETRY_BASE_DELAY * (2**attempt)
                        logger.warning(
                            f"{source.name} returned {response.status}, retrying in "
                            f"{wait_time:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                        )
                        await asyncio.sleep(wait_time)
                        continue

                    raise SourceFetchError(
                        f"HTTP {response.status}: {response.reason}", source.name
                    )

            except (asyncio.TimeoutError, aiohttp.ClientError) as exc:
                if last_attempt:
                    raise
                logger.warning(
                    f"{source.name} request failed: {exc!r} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(RETRY_BASE_DELAY * (2**attempt))

        raise SourceFetchError(
            f"Failed after {self.max_retries} attempts", source.name
        )

    async def fetch(
        self,
        source: SourceDescriptor,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> SourceFetchResult:
        logger.debug(f"Fetching API source: {source.name} ({source.endpoint})")

        close_session = session is None
        if session is None:
            session = aiohttp.ClientSession()

        try:
            data = await self._get_json(session, source)
            listings = parse_api_payload(source, data, max_items=self.max_items)
            logger.info(f"[Aggregator] Fetched {len(listings)} items from {source.name}")
            return SourceFetchResult(
                source_name=source.name, success=True, listings=listings
            )

        except SourceFetchError as e:
            logger.warning(f"[Aggregator] API error ({source.name}): {e.message}")
            return SourceFetchResult.failed(source.name, e.message)

        except asyncio.TimeoutError:
            error_msg = f"Timeout after {self.timeout}s"
            logger.warning(f"[Aggregator] API timeout ({source.name}): {error_msg}")
            return SourceFetchResult.failed(source.name, error_msg)

        except aiohttp.ClientError as e:
            error_msg = f"Client error: {str(e)}"
            logger.warning(f"[Aggregator] API client error ({source.name}): {error_msg}")
            return SourceFetchResult.failed(source.name, error_msg)

        except Exception as e:
            error_msg = f"Unexpected error: {str(e)}"
            logger.error(f"[Aggregator] API fetch failed ({source.name}): {error_msg}")
            return SourceFetchResult.failed(source.name, error_msg)

        finally:
            if close_session:
                await session.close()
