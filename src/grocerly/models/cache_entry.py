"""CacheEntry model for Grocerly."""
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class CacheEntry(Base, TimestampMixin):
    """A single key-value entry of the local cache."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<CacheEntry(key='{self.key}', size={len(self.value or '')})>"
