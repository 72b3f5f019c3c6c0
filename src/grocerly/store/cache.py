"""Local cache holding the last known full grocery list."""
import json
import time
from datetime import datetime, UTC
from typing import List, Optional
from pydantic import ValidationError
from sqlalchemy.orm import sessionmaker

from grocerly.db.session import create_cache_engine, create_session_factory, session_scope
from grocerly.domain.types import GroceryItem
from grocerly.errors import CacheError
from grocerly.models import CacheEntry
from grocerly.utils.logger import get_logger


CACHE_KEY = "groceries_cache"
CACHE_TIMESTAMP_KEY = "groceries_cache_timestamp"


class LocalCache:
    """
    Durable snapshot of the item list plus the time it was written.

    A snapshot is always replaced as a whole. There is no expiry: once
    present it stays authoritative until overwritten or cleared.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> 'LocalCache':
        """Open (and create if needed) a cache database at the given URL."""
        engine = create_cache_engine(url, echo=echo)
        return cls(create_session_factory(engine))

    def save(self, items: List[GroceryItem]) -> None:
        """Replace the snapshot with the given list and stamp the current time."""
        payload = json.dumps([item.to_record() for item in items], ensure_ascii=False)
        stamp = str(int(time.time() * 1000))
        with session_scope(self._session_factory) as session:
            session.merge(CacheEntry(key=CACHE_KEY, value=payload))
            session.merge(CacheEntry(key=CACHE_TIMESTAMP_KEY, value=stamp))
        self.logger.debug("Cache saved", count=len(items), timestamp=stamp)

    def load(self) -> Optional[List[GroceryItem]]:
        """
        Read the snapshot.

        Returns:
            The cached list, or None when nothing has been saved yet

        Raises:
            CacheError: If the stored snapshot cannot be parsed
        """
        with session_scope(self._session_factory) as session:
            entry = session.get(CacheEntry, CACHE_KEY)
            payload = entry.value if entry else None

        if payload is None:
            return None

        try:
            records = json.loads(payload)
            return [GroceryItem.model_validate(record) for record in records]
        except (ValueError, TypeError, ValidationError) as e:
            self.logger.error("Cache snapshot is unreadable", error=str(e))
            raise CacheError(
                "Cached grocery list is corrupted",
                suggestions=["Reload the list from the store"],
            ) from e

    def last_saved_at(self) -> Optional[datetime]:
        """Time of the last save, or None if the cache is empty."""
        with session_scope(self._session_factory) as session:
            entry = session.get(CacheEntry, CACHE_TIMESTAMP_KEY)
            stamp = entry.value if entry else None

        if not stamp:
            return None
        try:
            return datetime.fromtimestamp(int(stamp) / 1000, UTC)
        except ValueError:
            self.logger.warning("Cache timestamp is unreadable", timestamp=stamp)
            return None

    def clear(self) -> None:
        """Drop the snapshot and its timestamp."""
        with session_scope(self._session_factory) as session:
            for key in (CACHE_KEY, CACHE_TIMESTAMP_KEY):
                entry = session.get(CacheEntry, key)
                if entry is not None:
                    session.delete(entry)
        self.logger.info("Cache cleared")
