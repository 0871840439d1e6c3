"""
Unit Tests for URL-based Deduplication

Usage:
    cd backend && pytest tests/test_deduplication.py -v
"""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.aggregator_errors import PersistenceError
from app.deduplication import DeduplicationGate

URL = "https://jobs.example.com/1"


class TestDeduplicationGate:
    """Tests for DeduplicationGate.is_duplicate."""

    async def test_new_url_not_duplicate(self, store):
        gate = DeduplicationGate(store)
        assert await gate.is_duplicate(URL) is False
        assert store.exists_calls == [URL]

    async def test_stored_url_is_duplicate(self, store):
        await store.insert(external_apply_url=URL, title="Old title")
        gate = DeduplicationGate(store)
        assert await gate.is_duplicate(URL) is True

    async def test_url_stored_this_cycle_is_duplicate(self, store):
        gate = DeduplicationGate(store)
        assert await gate.is_duplicate(URL) is False
        gate.mark_seen(URL)
        assert await gate.is_duplicate(URL) is True
        # Second check never reaches storage
        assert store.exists_calls == [URL]

    async def test_unconfirmed_url_checked_again(self, store):
        gate = DeduplicationGate(store)
        assert await gate.is_duplicate(URL) is False
        # No mark_seen: the first copy was never stored
        assert await gate.is_duplicate(URL) is False
        assert store.exists_calls == [URL, URL]

    async def test_failed_check_does_not_mark_seen(self, store):
        store.fail_exists_urls.add(URL)
        gate = DeduplicationGate(store)
        with pytest.raises(PersistenceError):
            await gate.is_duplicate(URL)

        store.fail_exists_urls.clear()
        assert await gate.is_duplicate(URL) is False

    async def test_new_gate_forgets_previous_cycle(self, store):
        DeduplicationGate(store).mark_seen(URL)
        assert await DeduplicationGate(store).is_duplicate(URL) is False

    async def test_storage_failure_raises_persistence_error(self, store):
        store.fail_exists_urls.add(URL)
        gate = DeduplicationGate(store)
        with pytest.raises(PersistenceError) as exc_info:
            await gate.is_duplicate(URL)
        assert exc_info.value.external_apply_url == URL
        assert "Existence check failed" in exc_info.value.message
