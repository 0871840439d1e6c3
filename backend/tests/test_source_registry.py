"""
Unit Tests for the Source Registry

Usage:
    cd backend && pytest tests/test_source_registry.py -v
"""

import dataclasses
import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.source_registry import (
    SOURCES,
    ApiFormat,
    SourceDescriptor,
    SourceKind,
    build_registry,
    get_source,
    get_sources,
)


class TestSourceDescriptor:
    """Tests for descriptor validation."""

    def test_defaults(self):
        source = SourceDescriptor(
            name="Feed", kind=SourceKind.FEED, endpoint="https://example.com/rss"
        )
        assert source.category == "job"
        assert source.default_location == "Remote"
        assert source.api_format is None

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            SourceDescriptor(name="  ", kind=SourceKind.FEED, endpoint="https://example.com/rss")

    def test_non_http_endpoint_rejected(self):
        with pytest.raises(ValueError):
            SourceDescriptor(name="Feed", kind=SourceKind.FEED, endpoint="ftp://example.com/rss")

    def test_api_source_requires_format(self):
        with pytest.raises(ValueError):
            SourceDescriptor(name="Api", kind=SourceKind.API, endpoint="https://example.com/api")

    def test_descriptor_is_immutable(self):
        source = SourceDescriptor(
            name="Feed", kind=SourceKind.FEED, endpoint="https://example.com/rss"
        )
        with pytest.raises(dataclasses.FrozenInstanceError):
            source.name = "Other"


class TestBuildRegistry:
    """Tests for registry construction."""

    def test_preserves_order(self):
        a = SourceDescriptor(name="A", kind=SourceKind.FEED, endpoint="https://a.example.com")
        b = SourceDescriptor(name="B", kind=SourceKind.FEED, endpoint="https://b.example.com")
        registry = build_registry([b, a])
        assert [s.name for s in registry] == ["B", "A"]
        assert isinstance(registry, tuple)

    def test_duplicate_names_rejected(self):
        a = SourceDescriptor(name="A", kind=SourceKind.FEED, endpoint="https://a.example.com")
        a2 = SourceDescriptor(name="A", kind=SourceKind.FEED, endpoint="https://other.example.com")
        with pytest.raises(ValueError, match="Duplicate"):
            build_registry([a, a2])


class TestDefaultSources:
    """Tests for the shipped source list."""

    def test_both_kinds_present(self):
        kinds = {s.kind for s in get_sources()}
        assert kinds == {SourceKind.FEED, SourceKind.API}

    def test_every_api_source_has_format(self):
        for source in SOURCES:
            if source.kind == SourceKind.API:
                assert isinstance(source.api_format, ApiFormat)

    def test_names_unique(self):
        names = [s.name for s in SOURCES]
        assert len(names) == len(set(names))

    def test_get_source_by_name(self):
        source = get_source("ReliefWeb: Rwanda")
        assert source is not None
        assert source.api_format == ApiFormat.RELIEFWEB
        assert source.default_location == "Rwanda"

    def test_get_source_unknown(self):
        assert get_source("Nope") is None
