"""
Source fetchers for external opportunity ingestion.

This package provides one fetcher per integration kind:
1. Feeds - RSS/Atom job boards and news queries
2. APIs  - JSON job board APIs (Remotive, RemoteOK, ReliefWeb)

Each fetcher returns a SourceFetchResult of NormalizedListing objects for
the aggregation cycle.
"""

from .base import (
    BaseFetcher,
    NormalizedListing,
    SourceFetchResult,
    build_fetchers,
    get_fetcher,
)

from .feed_fetcher import FeedFetcher, parse_feed_entries

from .api_fetcher import ApiFetcher, parse_api_payload

__all__ = [
    # Shared
    "BaseFetcher",
    "NormalizedListing",
    "SourceFetchResult",
    "build_fetchers",
    "get_fetcher",
    # Feed Fetcher
    "FeedFetcher",
    "parse_feed_entries",
    # API Fetcher
    "ApiFetcher",
    "parse_api_payload",
]
