"""Tests for the grocery list service."""
import asyncio
import pytest

from grocerly.domain.types import GroceryItem, MutationAck
from grocerly.errors import (
    CacheError,
    FetchError,
    InvalidItemError,
    ItemNotFoundError,
    SyncError,
    SyncRejectedError,
)
from grocerly.services.grocery_service import GroceryService, MutationState


# Loading

@pytest.mark.asyncio
async def test_load_prefers_cache(loaded_service, mock_store, groceries):
    """Test that a cached list is used and the store is not consulted."""
    result = await loaded_service.load()

    assert result.success
    assert result.data == groceries
    assert result.metadata["source"] == "cache"
    assert loaded_service.loaded
    mock_store.fetch_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_load_fetches_when_no_cache(grocery_service, mock_store, cache, groceries):
    """Test that an empty cache triggers a fetch whose result is cached."""
    result = await grocery_service.load()

    assert result.success
    assert result.metadata["source"] == "store"
    assert grocery_service.items == groceries
    assert cache.load() == groceries
    mock_store.fetch_all.assert_awaited_once()


@pytest.mark.asyncio
async def test_load_fetch_failure(grocery_service, mock_store, cache):
    """Test that a failed first fetch yields a retryable failure."""
    mock_store.fetch_all.side_effect = FetchError("Error fetching data: Bad Gateway")

    result = await grocery_service.load()

    assert not result.success
    assert "Failed to load groceries" in result.error
    assert result.suggestions
    assert not grocery_service.loaded
    assert grocery_service.items == []
    assert cache.load() is None


@pytest.mark.asyncio
async def test_load_corrupted_cache(grocery_service, mock_store, monkeypatch):
    """Test that an unreadable cache is reported, not fetched around."""
    def broken_load():
        raise CacheError("Cached grocery list is corrupted")

    monkeypatch.setattr(grocery_service.cache, "load", broken_load)

    result = await grocery_service.load()

    assert not result.success
    assert result.error == "Cached grocery list is corrupted"
    mock_store.fetch_all.assert_not_awaited()


@pytest.mark.asyncio
async def test_reload_overwrites_cache(loaded_service, mock_store, cache):
    """Test that an explicit reload replaces the cached list."""
    fresh = [GroceryItem(id="9", name="Coffee", price="300")]
    mock_store.fetch_all.return_value = fresh

    result = await loaded_service.reload()

    assert result.success
    assert loaded_service.items == fresh
    assert cache.load() == fresh


@pytest.mark.asyncio
async def test_search_uses_current_list(loaded_service):
    """Test that search filters the in-memory list."""
    await loaded_service.load()

    assert [i.name for i in loaded_service.search("ea")] == ["Bread"]
    assert loaded_service.search("e") == loaded_service.items


# Add

@pytest.mark.asyncio
async def test_add_applies_locally_before_sync(loaded_service, mock_store, cache):
    """Test that the new item is in memory and cache while the store call runs."""
    await loaded_service.load()
    seen = {}

    async def check_state(item):
        seen["memory"] = [i.id for i in loaded_service.items]
        seen["cache"] = [i.id for i in cache.load()]
        return MutationAck(status="success")

    mock_store.add.side_effect = check_state

    item = await loaded_service.add_item("Tomatoes", "25.50", "")

    assert seen["memory"][-1] == item.id
    assert seen["cache"][-1] == item.id
    assert loaded_service.history[-1].state == MutationState.SYNCED


@pytest.mark.asyncio
async def test_add_assigns_timestamp_id(loaded_service, mock_store):
    """Test that the client-side id is the current time in milliseconds."""
    await loaded_service.load()

    item = await loaded_service.add_item("  Tomatoes ", "25.50", " http://x/t.jpg ")

    assert item.id == "1700000000123"
    assert item.name == "Tomatoes"
    assert item.image_url == "http://x/t.jpg"
    mock_store.add.assert_awaited_once_with(item)


@pytest.mark.asyncio
async def test_add_id_collision_is_bumped(loaded_service):
    """Test that ids stay unique when two adds share a millisecond."""
    await loaded_service.load()

    first = await loaded_service.add_item("Tomatoes", "25")
    second = await loaded_service.add_item("Onions", "10")

    assert first.id == "1700000000123"
    assert second.id == "1700000000124"
    ids = [i.id for i in loaded_service.items]
    assert len(ids) == len(set(ids))


@pytest.mark.asyncio
@pytest.mark.parametrize("name,price", [
    ("", "10"),
    ("   ", "10"),
    ("Milk", ""),
    ("Milk", "abc"),
    ("Milk", "NaN"),
])
async def test_add_invalid_fields(grocery_service, mock_store, cache, name, price):
    """Test that invalid input changes nothing and never reaches the store."""
    with pytest.raises(InvalidItemError):
        await grocery_service.add_item(name, price)

    assert grocery_service.items == []
    assert cache.load() is None
    mock_store.add.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_failure_rolls_back(loaded_service, mock_store, cache, groceries):
    """Test that a rejected add is undone and re-raised."""
    await loaded_service.load()
    mock_store.add.side_effect = SyncRejectedError("duplicate")

    with pytest.raises(SyncRejectedError, match="duplicate"):
        await loaded_service.add_item("Milk", "50")

    assert loaded_service.items == groceries
    assert cache.load() == groceries
    assert loaded_service.history[-1].state == MutationState.ROLLED_BACK
    assert loaded_service.history[-1].error == "duplicate"
    assert len(loaded_service.warnings) == 1


# Update

@pytest.mark.asyncio
async def test_update_item(loaded_service, mock_store, cache):
    """Test that an update keeps id and position and targets by id."""
    await loaded_service.load()

    updated = await loaded_service.update_item("2", "Rye Bread", "45", "")

    assert updated.id == "2"
    assert loaded_service.items[1] == updated
    assert cache.load()[1] == updated
    mock_store.update.assert_awaited_once_with(updated, None)


@pytest.mark.asyncio
async def test_update_row_targeting(mock_store, cache, groceries):
    """Test that row targeting passes the local index."""
    cache.save(groceries)
    service = GroceryService(mock_store, cache, targeting="row")
    await service.load()

    updated = await service.update_item("3", "Eggs", "130", "")

    mock_store.update.assert_awaited_once_with(updated, 2)


@pytest.mark.asyncio
async def test_update_unknown_item(loaded_service, mock_store):
    """Test that updating a missing id raises without calling the store."""
    await loaded_service.load()

    with pytest.raises(ItemNotFoundError):
        await loaded_service.update_item("404", "Ghost", "1")

    mock_store.update.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_failure_restores_snapshot(loaded_service, mock_store, cache, groceries):
    """Test that a failed update restores the previous item in memory and cache."""
    await loaded_service.load()
    mock_store.update.side_effect = SyncError("Error trying to update item: timeout")

    with pytest.raises(SyncError):
        await loaded_service.update_item("1", "Oat Milk", "80", "")

    assert loaded_service.items == groceries
    assert loaded_service.items == cache.load()
    assert loaded_service.history[-1].state == MutationState.ROLLED_BACK


@pytest.mark.asyncio
async def test_update_failure_cache_mode_keeps_optimistic_state(mock_store, cache, groceries):
    """Test best-effort rollback: memory is reloaded from the post-mutation cache."""
    cache.save(groceries)
    warnings = []
    service = GroceryService(mock_store, cache, rollback="cache", on_warning=warnings.append)
    await service.load()
    mock_store.update.side_effect = SyncError("Error trying to update item: timeout")

    with pytest.raises(SyncError):
        await service.update_item("1", "Oat Milk", "80", "")

    assert service.items == cache.load()
    assert service.items[0].name == "Oat Milk"
    assert warnings == service.warnings
    assert "saved locally" in warnings[0]


@pytest.mark.asyncio
async def test_update_failure_cache_mode_unreadable_cache(mock_store, cache, groceries, monkeypatch):
    """Test that an unreadable cache during rollback still warns and re-raises the sync error."""
    cache.save(groceries)
    service = GroceryService(mock_store, cache, rollback="cache")
    await service.load()
    mock_store.update.side_effect = SyncError("Error trying to update item: timeout")

    def broken_load():
        raise CacheError("corrupt")

    monkeypatch.setattr(cache, "load", broken_load)

    with pytest.raises(SyncError, match="timeout"):
        await service.update_item("1", "Oat Milk", "80", "")

    assert service.items[0].name == "Oat Milk"
    assert service.history[-1].state == MutationState.ROLLED_BACK
    assert len(service.warnings) == 1


# Delete

@pytest.mark.asyncio
async def test_delete_item(loaded_service, mock_store, cache):
    """Test that a delete removes the item and targets by id."""
    await loaded_service.load()

    await loaded_service.delete_item("2")

    assert [i.id for i in loaded_service.items] == ["1", "3"]
    assert [i.id for i in cache.load()] == ["1", "3"]
    mock_store.delete.assert_awaited_once_with("2", None)


@pytest.mark.asyncio
async def test_delete_failure_restores_position(loaded_service, mock_store, cache, groceries):
    """Test that a failed delete puts the item back where it was."""
    await loaded_service.load()
    mock_store.delete.side_effect = SyncError("Error trying to delete item: Bad Gateway")

    with pytest.raises(SyncError):
        await loaded_service.delete_item("2")

    assert loaded_service.items == groceries
    assert cache.load() == groceries


@pytest.mark.asyncio
async def test_delete_unknown_item(loaded_service, mock_store):
    """Test that deleting a missing id raises without calling the store."""
    await loaded_service.load()

    with pytest.raises(ItemNotFoundError):
        await loaded_service.delete_item("404")

    mock_store.delete.assert_not_awaited()


# Warnings and overlapping mutations

@pytest.mark.asyncio
async def test_warnings_dismissed(loaded_service, mock_store):
    """Test that sync warnings accumulate until dismissed."""
    await loaded_service.load()
    mock_store.delete.side_effect = SyncError("boom")

    for item_id in ("1", "2"):
        with pytest.raises(SyncError):
            await loaded_service.delete_item(item_id)

    assert len(loaded_service.warnings) == 2
    loaded_service.dismiss_warnings()
    assert loaded_service.warnings == []


@pytest.mark.asyncio
async def test_failed_update_does_not_undo_concurrent_delete(loaded_service, mock_store, cache):
    """Test that rolling back one mutation leaves an overlapping one intact."""
    await loaded_service.load()
    release = asyncio.Event()

    async def slow_failure(item, index):
        await release.wait()
        raise SyncError("timeout")

    mock_store.update.side_effect = slow_failure

    update = asyncio.create_task(loaded_service.update_item("1", "Oat Milk", "80"))
    await asyncio.sleep(0)
    assert loaded_service.items[0].name == "Oat Milk"

    await loaded_service.delete_item("3")
    release.set()
    with pytest.raises(SyncError):
        await update

    assert [i.id for i in loaded_service.items] == ["1", "2"]
    assert loaded_service.items[0].name == "Milk"
    assert loaded_service.items == cache.load()
