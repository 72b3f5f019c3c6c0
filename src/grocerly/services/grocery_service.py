"""Grocery list service with optimistic updates."""
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from pydantic import ValidationError

from grocerly.config.settings import AppConfig
from grocerly.domain.types import GroceryDraft, GroceryItem
from grocerly.errors import (
    CacheError,
    GrocerlyError,
    InvalidItemError,
    ItemNotFoundError,
    SyncError,
)
from grocerly.store.cache import LocalCache
from grocerly.store.sheets_client import SheetsStore
from .base_service import BaseService, Result
from .search import MIN_QUERY_LENGTH, filter_and_sort


class MutationState(str, Enum):
    """Lifecycle of a single mutation."""
    APPLIED_LOCALLY = "applied_locally"
    SYNCED = "synced"
    ROLLED_BACK = "rolled_back"


@dataclass
class MutationRecord:
    """What happened to one add/update/delete."""
    action: str
    item_id: str
    state: MutationState = MutationState.APPLIED_LOCALLY
    error: str = ""


# Warnings for best-effort ("cache") rollback, where the local change stays
CACHE_ROLLBACK_WARNINGS = {
    "add": (
        "Warning: Item added locally but failed to sync to the store. "
        "It will be lost if you clear the local cache."
    ),
    "update": (
        "Warning: Changes saved locally but failed to sync to the store. "
        "Your changes will be lost if you clear the local cache."
    ),
    "delete": (
        "Warning: Item removed locally but failed to sync to the store. "
        "It may reappear if you reload from the store."
    ),
}

SNAPSHOT_ROLLBACK_WARNING = (
    "Warning: Could not sync the {action} to the store, so it was undone locally."
)


class GroceryService(BaseService):
    """
    Owns the in-memory grocery list and the local cache.

    Every mutation is applied to memory and written to the cache before the
    store is called, so callers see it immediately. If the store call fails,
    the list is rolled back, a warning is recorded and the error re-raised.

    Rollback modes:
        snapshot: undo exactly this mutation, then rewrite the cache
        cache: reload whatever the cache holds (the optimistic state)

    Nothing is locked. Overlapping mutations are not ordered against each
    other, and in row-targeting mode an in-flight call may carry a stale row.
    """

    def __init__(
        self,
        store: SheetsStore,
        cache: LocalCache,
        targeting: str = "id",
        rollback: str = "snapshot",
        min_query_length: int = MIN_QUERY_LENGTH,
        on_warning: Optional[Callable[[str], None]] = None,
        clock: Callable[[], int] = lambda: time.time_ns() // 1_000_000
    ):
        """
        Initialize the service.

        Args:
            store: Remote store adapter
            cache: Local cache
            targeting: "id" or "row" addressing for update/delete
            rollback: "snapshot" or "cache" rollback mode
            min_query_length: Shortest query that filters the list
            on_warning: Optional callback for sync warnings
            clock: Time source for client-side ids (epoch milliseconds)
        """
        super().__init__()
        self.store = store
        self.cache = cache
        self.targeting = targeting
        self.rollback = rollback
        self.min_query_length = min_query_length
        self.on_warning = on_warning
        self._clock = clock
        self._items: List[GroceryItem] = []
        self.loaded = False
        self.warnings: List[str] = []
        self.history: List[MutationRecord] = []

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs) -> 'GroceryService':
        """Build the service with its store and cache from validated config."""
        store = SheetsStore(config.store)
        cache = LocalCache.from_url(config.app.CACHE_DB_URL, echo=config.app.CACHE_DB_ECHO)
        return cls(
            store,
            cache,
            targeting=config.store.TARGETING,
            rollback=config.store.ROLLBACK,
            min_query_length=config.app.MIN_QUERY_LENGTH,
            **kwargs
        )

    @property
    def items(self) -> List[GroceryItem]:
        """Current list (a copy)."""
        return list(self._items)

    def search(self, query: str) -> List[GroceryItem]:
        """Filtered and ranked view of the current list."""
        return filter_and_sort(self._items, query, self.min_query_length)

    def find(self, item_id: str) -> Tuple[int, GroceryItem]:
        """
        Locate an item by id.

        Raises:
            ItemNotFoundError: If no item has that id
        """
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index, item
        raise ItemNotFoundError(f"Item '{item_id}' not found")

    # Loading

    async def load(self) -> Result[List[GroceryItem]]:
        """
        Load the list, preferring the cache.

        The store is only consulted when no snapshot exists.
        """
        try:
            cached = self.cache.load()
        except GrocerlyError as e:
            return Result.fail(e.message, suggestions=e.suggestions)

        if cached is not None:
            self._items = cached
            self.loaded = True
            self._log_action("load", source="cache", count=len(cached))
            return Result.ok(self.items, source="cache")

        return await self.reload()

    async def reload(self) -> Result[List[GroceryItem]]:
        """Fetch the full list from the store and overwrite the cache."""
        try:
            items = await self.store.fetch_all()
        except GrocerlyError as e:
            self._log_action("reload", status="failed", error=e.message)
            return Result.fail(
                "Failed to load groceries. Please check your store configuration.",
                suggestions=e.suggestions or ["Retry"],
            )

        self._items = items
        self.cache.save(items)
        self.loaded = True
        self._log_action("reload", source="store", count=len(items))
        return Result.ok(self.items, source="store")

    # Mutations

    async def add_item(self, name: str, price: str, image_url: str = "") -> GroceryItem:
        """
        Add an item with a client-side id.

        Raises:
            InvalidItemError: If name or price is missing or malformed
            SyncError: If the store call fails (after rollback)
        """
        draft = self._validate(name, price, image_url)
        item = GroceryItem(
            id=self._new_id(),
            name=draft.name,
            price=draft.price,
            image_url=draft.image_url,
        )

        previous = self.items
        self._commit_local(previous + [item])
        record = self._record("add", item.id)

        await self._sync(record, lambda: self.store.add(item), undo=lambda items: [
            i for i in items if i.id != item.id
        ])
        return item

    async def update_item(
        self,
        item_id: str,
        name: str,
        price: str,
        image_url: str = ""
    ) -> GroceryItem:
        """
        Replace an item's fields, keeping its id and position.

        Raises:
            InvalidItemError: If name or price is missing or malformed
            ItemNotFoundError: If no item has that id
            SyncError: If the store call fails (after rollback)
        """
        draft = self._validate(name, price, image_url)
        index, original = self.find(item_id)
        updated = original.model_copy(update={
            "name": draft.name,
            "price": draft.price,
            "image_url": draft.image_url,
        })

        items = self.items
        items[index] = updated
        self._commit_local(items)
        record = self._record("update", item_id)

        def undo(current: List[GroceryItem]) -> List[GroceryItem]:
            return [original if i.id == item_id else i for i in current]

        await self._sync(
            record,
            lambda: self.store.update(updated, self._target(index)),
            undo=undo,
        )
        return updated

    async def delete_item(self, item_id: str) -> None:
        """
        Remove an item.

        Raises:
            ItemNotFoundError: If no item has that id
            SyncError: If the store call fails (after rollback)
        """
        index, removed = self.find(item_id)
        self._commit_local([i for i in self._items if i.id != item_id])
        record = self._record("delete", item_id)

        def undo(current: List[GroceryItem]) -> List[GroceryItem]:
            if any(i.id == item_id for i in current):
                return current
            restored = list(current)
            restored.insert(min(index, len(restored)), removed)
            return restored

        await self._sync(
            record,
            lambda: self.store.delete(item_id, self._target(index)),
            undo=undo,
        )

    def dismiss_warnings(self) -> None:
        """Forget all sync warnings shown so far."""
        self.warnings.clear()

    # Internals

    def _validate(self, name: str, price: str, image_url: str) -> GroceryDraft:
        try:
            return GroceryDraft(name=name or "", price=price or "", image_url=image_url or "")
        except ValidationError as e:
            messages = [
                str(err.get("msg", "")).removeprefix("Value error, ")
                for err in e.errors()
            ]
            raise InvalidItemError(
                "; ".join(messages) or "Please fill in at least the name and price",
                suggestions=["Please fill in at least the name and price"],
            ) from e

    def _new_id(self) -> str:
        taken = {item.id for item in self._items}
        candidate = self._clock()
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def _target(self, index: int) -> Optional[int]:
        return index if self.targeting == "row" else None

    def _commit_local(self, items: List[GroceryItem]) -> None:
        self._items = items
        self.cache.save(items)

    def _record(self, action: str, item_id: str) -> MutationRecord:
        record = MutationRecord(action=action, item_id=item_id)
        self.history.append(record)
        self._log_action(action, status=record.state.value, item_id=item_id)
        return record

    async def _sync(
        self,
        record: MutationRecord,
        call: Callable[[], Awaitable[object]],
        undo: Callable[[List[GroceryItem]], List[GroceryItem]]
    ) -> None:
        try:
            await call()
        except SyncError as e:
            self._roll_back(record, undo, e)
            raise
        record.state = MutationState.SYNCED
        self._log_action(record.action, status=record.state.value, item_id=record.item_id)

    def _roll_back(
        self,
        record: MutationRecord,
        undo: Callable[[List[GroceryItem]], List[GroceryItem]],
        error: SyncError
    ) -> None:
        if self.rollback == "snapshot":
            self._commit_local(undo(self.items))
            warning = SNAPSHOT_ROLLBACK_WARNING.format(action=record.action)
        else:
            try:
                cached = self.cache.load()
            except CacheError as e:
                # Memory already holds the optimistic state the cache would give
                self.logger.warning("Rollback cache unreadable", error=e.message)
                cached = None
            if cached is not None:
                self._items = cached
            warning = CACHE_ROLLBACK_WARNINGS[record.action]

        record.state = MutationState.ROLLED_BACK
        record.error = error.message
        self.logger.warning(
            "Sync failed, rolled back",
            action=record.action,
            item_id=record.item_id,
            mode=self.rollback,
            error=error.message,
        )
        self.warnings.append(warning)
        if self.on_warning:
            self.on_warning(warning)
