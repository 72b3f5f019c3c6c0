"""Tests for the local cache."""
import json
import time
from datetime import datetime, UTC

import pytest

from grocerly.db.session import session_scope
from grocerly.domain.types import GroceryItem
from grocerly.errors import CacheError
from grocerly.models import CacheEntry
from grocerly.store.cache import CACHE_KEY, CACHE_TIMESTAMP_KEY, LocalCache


def test_load_empty_cache(cache):
    """Test that an empty cache reports absence."""
    assert cache.load() is None
    assert cache.last_saved_at() is None


def test_save_and_load_round_trip(cache, groceries):
    """Test that a saved list loads back equal field by field."""
    cache.save(groceries)

    loaded = cache.load()

    assert [item.to_record() for item in loaded] == [item.to_record() for item in groceries]


def test_save_replaces_snapshot(cache, groceries):
    """Test that each save replaces the whole snapshot."""
    cache.save(groceries)
    cache.save(groceries[:1])

    assert cache.load() == groceries[:1]

    cache.save([])
    assert cache.load() == []


def test_snapshot_format(cache, session_factory):
    """Test the stored JSON keys and millisecond timestamp."""
    before = int(time.time() * 1000)
    cache.save([GroceryItem(id="1", name="Milk", price="50", image_url="http://x/m.jpg")])
    after = int(time.time() * 1000)

    with session_scope(session_factory) as session:
        payload = session.get(CacheEntry, CACHE_KEY).value
        stamp = session.get(CacheEntry, CACHE_TIMESTAMP_KEY).value

    assert json.loads(payload) == [
        {"id": "1", "name": "Milk", "price": "50", "imageUrl": "http://x/m.jpg"}
    ]
    assert before <= int(stamp) <= after


def test_last_saved_at(cache, groceries):
    """Test that the save time is exposed as an aware datetime."""
    cache.save(groceries)

    saved_at = cache.last_saved_at()

    assert saved_at.tzinfo is not None
    assert abs((datetime.now(UTC) - saved_at).total_seconds()) < 60


def test_corrupted_snapshot_raises(cache, session_factory):
    """Test that an unreadable snapshot raises CacheError."""
    with session_scope(session_factory) as session:
        session.merge(CacheEntry(key=CACHE_KEY, value="{not json"))

    with pytest.raises(CacheError):
        cache.load()


def test_clear(cache, groceries):
    """Test that clearing removes the snapshot and its timestamp."""
    cache.save(groceries)
    cache.clear()

    assert cache.load() is None
    assert cache.last_saved_at() is None


def test_cache_persists_across_instances(tmp_path, groceries):
    """Test that a file-backed cache survives reopening."""
    url = f"sqlite:///{tmp_path / 'cache.db'}"
    LocalCache.from_url(url).save(groceries)

    reopened = LocalCache.from_url(url)

    assert reopened.load() == groceries
