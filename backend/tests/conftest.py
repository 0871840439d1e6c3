"""
Shared fakes and factories for aggregator tests.

- InMemoryOpportunityStore: OpportunityStore over a list of dicts
- FakeSession / FakeResponse: the slice of aiohttp.ClientSession the fetchers use
- StubFetcher: returns canned SourceFetchResults per source name
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional, Union

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.config import AggregatorSettings
from app.source_fetchers.base import NormalizedListing, SourceFetchResult
from app.source_registry import ApiFormat, SourceDescriptor, SourceKind


# ============================================================================
# STORAGE FAKE
# ============================================================================

class InMemoryOpportunityStore:
    """OpportunityStore backed by a list, with failure injection."""

    def __init__(self):
        self.rows: List[Dict[str, Any]] = []
        self.exists_calls: List[str] = []
        self.fail_insert_urls: set = set()
        self.fail_insert_once_urls: set = set()
        self.fail_exists_urls: set = set()
        self.report_conflict_urls: set = set()

    async def exists(self, external_apply_url: str) -> bool:
        self.exists_calls.append(external_apply_url)
        if external_apply_url in self.fail_exists_urls:
            raise ConnectionError("connection reset by peer")
        return any(r["external_apply_url"] == external_apply_url for r in self.rows)

    async def insert(self, **values) -> bool:
        url = values["external_apply_url"]
        if url in self.fail_insert_once_urls:
            self.fail_insert_once_urls.discard(url)
            raise RuntimeError("deadlock detected")
        if url in self.fail_insert_urls:
            raise RuntimeError("value too long for type character varying(255)")
        if url in self.report_conflict_urls:
            return False
        if any(r["external_apply_url"] == url for r in self.rows):
            return False
        row = dict(values)
        row["id"] = len(self.rows) + 1
        self.rows.append(row)
        return True

    def by_url(self, url: str) -> Optional[Dict[str, Any]]:
        for row in self.rows:
            if row["external_apply_url"] == url:
                return row
        return None


# ============================================================================
# AIOHTTP FAKES
# ============================================================================

class FakeResponse:
    """Async context manager mimicking aiohttp.ClientResponse."""

    def __init__(self, status: int = 200, body: Union[str, Any] = "", reason: str = "OK"):
        self.status = status
        self.reason = reason
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def text(self) -> str:
        return self._body

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        return json.loads(self._body)


class FakeSession:
    """
    Minimal aiohttp.ClientSession stand-in.

    ``routes`` maps a URL to a FakeResponse, an exception instance to raise,
    or a list of either (consumed one per request, for retry tests).
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = routes or {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, **kwargs):
        self.calls.append({"url": url, **kwargs})
        route = self.routes.get(url)
        if isinstance(route, list):
            route = route.pop(0)
        if route is None:
            return FakeResponse(status=404, reason="Not Found")
        if isinstance(route, BaseException):
            raise route
        return route

    async def close(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False


class StubFetcher:
    """Fetcher returning canned results keyed by source name."""

    def __init__(self, results: Optional[Dict[str, Union[SourceFetchResult, BaseException]]] = None):
        self.results = results or {}
        self.fetched: List[str] = []

    async def fetch(self, source, session=None) -> SourceFetchResult:
        self.fetched.append(source.name)
        result = self.results.get(source.name)
        if isinstance(result, BaseException):
            raise result
        if result is None:
            return SourceFetchResult(source_name=source.name, success=True)
        return result


# ============================================================================
# FACTORIES
# ============================================================================

def make_feed_source(
    name: str = "Test Feed",
    endpoint: str = "https://jobs.example.com/feed.rss",
    category: str = "job",
) -> SourceDescriptor:
    """Factory function to create a feed source descriptor."""
    return SourceDescriptor(name=name, kind=SourceKind.FEED, endpoint=endpoint, category=category)


def make_api_source(
    name: str = "Test API",
    endpoint: str = "https://api.example.com/jobs",
    api_format: ApiFormat = ApiFormat.REMOTIVE,
    default_location: str = "Remote",
) -> SourceDescriptor:
    """Factory function to create an API source descriptor."""
    return SourceDescriptor(
        name=name,
        kind=SourceKind.API,
        endpoint=endpoint,
        api_format=api_format,
        default_location=default_location,
    )


def make_listing(
    url: str = "https://jobs.example.com/1",
    title: str = "Backend Engineer",
    company: str = "Acme",
    location: str = "Remote",
    raw_description: str = "<p>Build things</p>",
    source_name: str = "Test Feed",
) -> NormalizedListing:
    """Factory function to create a normalized listing."""
    return NormalizedListing(
        title=title,
        company=company,
        location=location,
        raw_description=raw_description,
        external_apply_url=url,
        source_name=source_name,
    )


def make_rss(items: List[Dict[str, str]], title: str = "Test Jobs") -> str:
    """Build an RSS 2.0 document from dicts with title/link/description keys."""
    entries = []
    for item in items:
        parts = []
        if "title" in item:
            parts.append(f"<title>{item['title']}</title>")
        if "link" in item:
            parts.append(f"<link>{item['link']}</link>")
        if "description" in item:
            parts.append(f"<description><![CDATA[{item['description']}]]></description>")
        entries.append("<item>" + "".join(parts) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://jobs.example.com</link>"
        "<description>Test feed</description>"
        + "".join(entries)
        + "</channel></rss>"
    )


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def store():
    return InMemoryOpportunityStore()


@pytest.fixture
def settings():
    return AggregatorSettings(fetch_timeout_seconds=5.0, max_items_per_source=50, api_max_retries=2)


@pytest.fixture
def no_retry_delay(monkeypatch):
    """Make API retry backoff instantaneous."""
    monkeypatch.setattr("app.source_fetchers.api_fetcher.RETRY_BASE_DELAY", 0.0)
