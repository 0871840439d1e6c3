"""
Shared types for opportunity source fetchers.

Every fetcher turns one :class:`SourceDescriptor` into a
:class:`SourceFetchResult`.  Fetchers never raise to their caller: network
and parse failures are logged and reported through ``success=False`` with an
empty listing list, so one broken source cannot stop the others.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import aiohttp

from app.source_registry import SourceDescriptor, SourceKind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class NormalizedListing:
    """
    One externally sourced opportunity in the platform's intermediate shape.

    Created per fetched item and discarded after the persist attempt.
    ``raw_description`` may still contain HTML; the content normalizer
    cleans it right before persisting.
    """
    title: str
    company: str
    location: str
    raw_description: str
    external_apply_url: str
    source_name: str


@dataclass
class SourceFetchResult:
    """Result of fetching a single source."""
    source_name: str
    success: bool
    listings: List[NormalizedListing] = field(default_factory=list)
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, source_name: str, error_message: str) -> "SourceFetchResult":
        return cls(source_name=source_name, success=False, error_message=error_message)


def clean_field(value: object, max_length: int = 255) -> str:
    """Coerce a raw payload value to a stripped, length-capped string."""
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return " ".join(value.split())[:max_length]


# ============================================================================
# Fetcher Capability
# ============================================================================

class BaseFetcher(ABC):
    """Strategy for one integration kind."""

    kind: SourceKind

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, max_items: int = 50):
        self.timeout = timeout
        self.max_items = max_items

    @abstractmethod
    async def fetch(
        self,
        source: SourceDescriptor,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> SourceFetchResult:
        """
        Fetch and parse *source*.

        Args:
            source: Descriptor whose ``kind`` matches this fetcher
            session: Optional aiohttp session for connection reuse

        Returns:
            SourceFetchResult with listings or error information
        """


def build_fetchers(timeout: float = DEFAULT_TIMEOUT, max_items: int = 50, api_max_retries: int = 2) -> Dict[SourceKind, BaseFetcher]:
    """Create one fetcher per supported source kind."""
    from .api_fetcher import ApiFetcher
    from .feed_fetcher import FeedFetcher

    return {
        SourceKind.FEED: FeedFetcher(timeout=timeout, max_items=max_items),
        SourceKind.API: ApiFetcher(
            timeout=timeout, max_items=max_items, max_retries=api_max_retries
        ),
    }


def get_fetcher(
    source: SourceDescriptor, fetchers: Dict[SourceKind, BaseFetcher]
) -> BaseFetcher:
    """Select the fetcher for *source* by its kind."""
    try:
        return fetchers[source.kind]
    except KeyError:
        raise LookupError(f"No fetcher registered for source kind '{source.kind}'") from None
