"""Models package for Grocerly."""
from .base import Base
from .cache_entry import CacheEntry

__all__ = ['Base', 'CacheEntry']
