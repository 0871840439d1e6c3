"""
Static registry of external opportunity sources.

The registry is an ordered, immutable tuple of :class:`SourceDescriptor`
objects built once at import time.  Adding or removing a source requires a
process restart; nothing in the application mutates it.

Two integration kinds are supported:

- ``feed``: RSS/Atom endpoints, parsed with feedparser.
- ``api``:  JSON endpoints; ``api_format`` selects the payload parser.

Usage:
    from app.source_registry import get_sources

    for source in get_sources():
        print(source.name, source.kind.value)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple


class SourceKind(str, Enum):
    """Integration protocol used to reach a source."""

    FEED = "feed"
    API = "api"


class ApiFormat(str, Enum):
    """JSON payload layouts understood by the API fetcher."""

    REMOTIVE = "remotive"
    REMOTEOK = "remoteok"
    RELIEFWEB = "reliefweb"


DEFAULT_LOCATION = "Remote"
DEFAULT_CATEGORY = "job"


@dataclass(frozen=True)
class SourceDescriptor:
    """One configured external origin of listings."""

    name: str
    kind: SourceKind
    endpoint: str
    api_format: Optional[ApiFormat] = None
    category: str = DEFAULT_CATEGORY
    default_location: str = DEFAULT_LOCATION

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Source name must not be empty")
        if not self.endpoint.startswith(("http://", "https://")):
            raise ValueError(f"Source '{self.name}' endpoint must be an http(s) URL")
        if self.kind == SourceKind.API and self.api_format is None:
            raise ValueError(f"API source '{self.name}' requires an api_format")


def build_registry(sources: Iterable[SourceDescriptor]) -> Tuple[SourceDescriptor, ...]:
    """Freeze *sources* into a registry tuple, rejecting duplicate names."""
    registry = tuple(sources)
    seen = set()
    for source in registry:
        if source.name in seen:
            raise ValueError(f"Duplicate source name in registry: {source.name}")
        seen.add(source.name)
    return registry


# ============================================================================
# Default Sources
# ============================================================================

SOURCES: Tuple[SourceDescriptor, ...] = build_registry(
    [
        # Global remote pipelines
        SourceDescriptor(
            name="WeWorkRemotely: Programming",
            kind=SourceKind.FEED,
            endpoint="https://weworkremotely.com/categories/remote-programming-jobs.rss",
        ),
        SourceDescriptor(
            name="Remotive: Software Dev",
            kind=SourceKind.API,
            endpoint="https://remotive.com/api/remote-jobs?category=software-dev&limit=30",
            api_format=ApiFormat.REMOTIVE,
        ),
        SourceDescriptor(
            name="Jobicy: Remote Jobs",
            kind=SourceKind.FEED,
            endpoint="https://jobicy.com/feed/job_feed",
        ),
        SourceDescriptor(
            name="RemoteOK",
            kind=SourceKind.API,
            endpoint="https://remoteok.com/api",
            api_format=ApiFormat.REMOTEOK,
        ),
        # Rwanda / Africa (UN and NGO jobs)
        SourceDescriptor(
            name="ReliefWeb: Rwanda",
            kind=SourceKind.API,
            endpoint=(
                "https://api.reliefweb.int/v1/jobs?appname=yenza&preset=latest&limit=20"
                "&query[value]=country:Rwanda&fields[include][]=title"
                "&fields[include][]=body&fields[include][]=source&fields[include][]=url"
            ),
            api_format=ApiFormat.RELIEFWEB,
            default_location="Rwanda",
        ),
        # Gigs / freelance
        SourceDescriptor(
            name="WeWorkRemotely: Contract",
            kind=SourceKind.FEED,
            endpoint="https://weworkremotely.com/categories/remote-contract-jobs.rss",
            category="gig",
        ),
        SourceDescriptor(
            name="Upwork: Software Dev",
            kind=SourceKind.FEED,
            endpoint=(
                "https://www.upwork.com/ab/feed/jobs/rss?q=software%20development"
                "&sort=recency&paging=0;10&api_params=1"
            ),
            category="gig",
        ),
        SourceDescriptor(
            name="Upwork: Rwanda",
            kind=SourceKind.FEED,
            endpoint=(
                "https://www.upwork.com/ab/feed/jobs/rss?q=Rwanda"
                "&sort=recency&paging=0;10&api_params=1"
            ),
            category="gig",
        ),
        # Learning
        SourceDescriptor(
            name="FreeCodeCamp News",
            kind=SourceKind.FEED,
            endpoint="https://www.freecodecamp.org/news/rss/",
            category="learning",
        ),
        # Internships
        SourceDescriptor(
            name="Google Careers: Internships",
            kind=SourceKind.FEED,
            endpoint="https://www.google.com/about/careers/applications/jobs/feed.xml",
            category="internship",
        ),
        SourceDescriptor(
            name="ReliefWeb: Internships (Global)",
            kind=SourceKind.API,
            endpoint=(
                "https://api.reliefweb.int/v1/jobs?appname=yenza&preset=latest&limit=10"
                "&query[value]=job_type:Internship&fields[include][]=title"
                "&fields[include][]=body&fields[include][]=source&fields[include][]=url"
            ),
            api_format=ApiFormat.RELIEFWEB,
            category="internship",
        ),
        # Events
        SourceDescriptor(
            name="Google News: Hackathons",
            kind=SourceKind.FEED,
            endpoint=(
                "https://news.google.com/rss/search?q=Hackathon+when:7d"
                "&hl=en-US&gl=US&ceid=US:en"
            ),
            category="event",
        ),
        SourceDescriptor(
            name="Google News: Tech Events Rwanda",
            kind=SourceKind.FEED,
            endpoint=(
                "https://news.google.com/rss/search?q=tech+event+rwanda+when:30d"
                "&hl=en-US&gl=US&ceid=US:en"
            ),
            category="event",
        ),
        # Scholarships and courses
        SourceDescriptor(
            name="Scholarship Positions",
            kind=SourceKind.FEED,
            endpoint="https://www.scholarshippositions.com/feed/",
            category="learning",
        ),
    ]
)


def get_sources() -> Tuple[SourceDescriptor, ...]:
    """Return the configured sources in processing order."""
    return SOURCES


def get_source(name: str) -> Optional[SourceDescriptor]:
    """Look up a configured source by name."""
    for source in SOURCES:
        if source.name == name:
            return source
    return None
