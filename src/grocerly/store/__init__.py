"""Remote store adapter and local cache."""
from .cache import LocalCache
from .sheets_client import SheetsStore

__all__ = ['LocalCache', 'SheetsStore']
