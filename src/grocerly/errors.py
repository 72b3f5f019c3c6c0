"""Error types for Grocerly."""
from typing import Optional, List, Dict, Any


class GrocerlyError(Exception):
    """Base class for Grocerly errors."""
    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.metadata = metadata or {}
        super().__init__(message)


class ConfigError(GrocerlyError):
    """Missing or placeholder configuration."""
    pass


class StoreError(GrocerlyError):
    """Base class for remote store failures."""
    pass


class FetchError(StoreError):
    """Reading the list from the remote store failed."""
    pass


class SyncError(StoreError):
    """Writing a mutation to the remote store failed."""
    pass


class SyncRejectedError(SyncError):
    """The store answered over HTTP but reported an error status (e.g. duplicate)."""
    pass


class CacheError(GrocerlyError):
    """The local cache snapshot could not be read."""
    pass


class InvalidItemError(GrocerlyError):
    """Required item fields are missing or malformed."""
    pass


class ItemNotFoundError(GrocerlyError):
    """No item with the given id is in the list."""
    pass


class ImageError(GrocerlyError):
    """Base class for image pipeline failures."""
    pass


class InvalidType(ImageError):
    """The file is not declared as an image."""
    pass


class TooLarge(ImageError):
    """The raw file exceeds the upload size limit."""
    pass


class DecodeError(ImageError):
    """The file could not be decoded as an image."""
    pass


class UploadError(ImageError):
    """The image host rejected the upload or could not be reached."""
    pass
