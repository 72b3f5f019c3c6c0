"""
Client for the spreadsheet-backed grocery store.

The store is a Google Apps Script web app in front of a sheet whose rows are
``[id, name, price, imageUrl]`` with one header row. Every call is a GET on
the same endpoint:

- no ``action``: return ``{"values": [[...], ...]}`` (header first)
- ``action=add``: append a row; ``{"status": "error", "message": ...}`` on
  duplicates and other rejections
- ``action=update`` / ``action=delete``: change or remove a row, addressed by
  ``id`` and, in row-targeting mode, also by ``row`` (index + 2)

No retries happen here.
"""
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from grocerly.config.settings import StoreSettings
from grocerly.domain.types import GroceryItem, MutationAck, RowsResponse
from grocerly.errors import FetchError, SyncError, SyncRejectedError
from grocerly.utils.logger import get_logger


# One offset for the header row, one because sheet rows are 1-indexed
ROW_OFFSET = 2


def row_number(index: int) -> int:
    """Sheet row number for a position in the local list."""
    if index < 0:
        raise ValueError("Row index cannot be negative")
    return index + ROW_OFFSET


class SheetsStore:
    """Remote store adapter for the grocery sheet."""

    def __init__(
        self,
        settings: StoreSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the adapter.

        Args:
            settings: Validated store settings
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.url = settings.APPS_SCRIPT_URL
        self.timeout = settings.TIMEOUT
        self._transport = transport
        self.logger = get_logger(self.__class__.__name__)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch_all(self) -> List[GroceryItem]:
        """
        Fetch every item in sheet order.

        Raises:
            FetchError: On transport failure, non-success status or a bad body
        """
        try:
            async with self._client() as client:
                response = await client.get(self.url)
        except httpx.HTTPError as e:
            self.logger.error("Fetch transport failure", error=str(e))
            raise FetchError(
                f"Error fetching data: {e}",
                suggestions=["Check your network connection", "Retry"],
            ) from e

        if not response.is_success:
            self.logger.error("Fetch failed", status=response.status_code)
            raise FetchError(
                f"Error fetching data: {response.reason_phrase or response.status_code}",
                metadata={"status_code": response.status_code},
            )

        try:
            rows = RowsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self.logger.error("Fetch returned an unexpected body", error=str(e))
            raise FetchError("Store returned an unexpected response") from e

        items = rows.items()
        self.logger.info("Fetched groceries", count=len(items))
        return items

    async def add(self, item: GroceryItem) -> MutationAck:
        """Append an item as a new row."""
        params = {"action": "add", **self._item_params(item)}
        return await self._mutate("add", params)

    async def update(self, item: GroceryItem, index: Optional[int] = None) -> MutationAck:
        """
        Overwrite the row holding ``item.id``.

        Args:
            item: The edited item
            index: Local list position; when given the row number is sent too
        """
        params: Dict[str, Any] = {"action": "update"}
        if index is not None:
            params["row"] = row_number(index)
        params.update(self._item_params(item))
        return await self._mutate("update", params)

    async def delete(self, item_id: str, index: Optional[int] = None) -> MutationAck:
        """Remove the row holding ``item_id`` (and at ``index`` if given)."""
        params: Dict[str, Any] = {"action": "delete"}
        if index is not None:
            params["row"] = row_number(index)
        params["id"] = item_id
        return await self._mutate("delete", params)

    @staticmethod
    def _item_params(item: GroceryItem) -> Dict[str, str]:
        return {
            "id": item.id,
            "name": item.name,
            "price": item.price,
            "imageUrl": item.image_url,
        }

    async def _mutate(self, action: str, params: Dict[str, Any]) -> MutationAck:
        try:
            async with self._client() as client:
                response = await client.get(self.url, params=params)
        except httpx.HTTPError as e:
            self.logger.error("Sync transport failure", action=action, error=str(e))
            raise SyncError(
                f"Error trying to {action} item: {e}",
                metadata={"action": action},
            ) from e

        if not response.is_success:
            self.logger.error("Sync failed", action=action, status=response.status_code)
            raise SyncError(
                f"Error trying to {action} item: "
                f"{response.reason_phrase or response.status_code}",
                metadata={"action": action, "status_code": response.status_code},
            )

        try:
            ack = MutationAck.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            self.logger.error("Sync returned an unexpected body", action=action, error=str(e))
            raise SyncError(
                f"Store returned an unexpected response to {action}",
                metadata={"action": action},
            ) from e

        if ack.is_error:
            message = ack.message or f"Failed to {action} item"
            self.logger.warning("Store rejected mutation", action=action, reason=message)
            raise SyncRejectedError(message, metadata={"action": action})

        self.logger.debug("Store acknowledged mutation", action=action)
        return ack
