"""Domain types for Grocerly."""
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Column order of a remote store row
ROW_COLUMNS = ("id", "name", "price", "imageUrl")


class GroceryItem(BaseModel):
    """A grocery item as held in memory, in the cache and in the store."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str = ""
    price: str = "0"
    image_url: str = Field(default="", alias="imageUrl")

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    def to_record(self) -> dict:
        """Serialize with the store/cache field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_row(cls, row: List[Any], position: int) -> 'GroceryItem':
        """
        Map a positional store row into an item.

        Missing cells default to empty name/image, price "0" and a
        placeholder id derived from the row's position.
        """
        cells = [_cell(row, i) for i in range(len(ROW_COLUMNS))]
        return cls(
            id=cells[0] or f"temp-{position}",
            name=cells[1],
            price=cells[2] or "0",
            imageUrl=cells[3],
        )


def _cell(row: List[Any], index: int) -> str:
    if index >= len(row):
        return ""
    value = row[index]
    if value is None or value == "":
        return ""
    return str(value)


class GroceryDraft(BaseModel):
    """User-entered fields for a new or edited item."""
    name: str
    price: str
    image_url: str = ""

    @field_validator('name')
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Name is required')
        return v

    @field_validator('price')
    @classmethod
    def price_numeric(cls, v: str) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError('Price is required')
        try:
            amount = Decimal(v)
        except InvalidOperation:
            raise ValueError(f"Price '{v}' is not a number") from None
        if not amount.is_finite():
            raise ValueError(f"Price '{v}' is not a number")
        return v

    @field_validator('image_url')
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()


class ProgressStage(str, Enum):
    """Stages reported while an image is processed."""
    VALIDATING = "validating"
    COMPRESSING = "compressing"
    UPLOADING = "uploading"
    COMPLETE = "complete"

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]


_STAGE_LABELS = {
    ProgressStage.VALIDATING: "Validating image...",
    ProgressStage.COMPRESSING: "Compressing image...",
    ProgressStage.UPLOADING: "Uploading...",
    ProgressStage.COMPLETE: "Upload complete!",
}


# Remote response shapes

class RowsResponse(BaseModel):
    """List-fetch response: header row followed by item rows."""
    model_config = ConfigDict(extra="ignore")

    values: Optional[List[List[Any]]] = None

    def items(self) -> List[GroceryItem]:
        rows = self.values or []
        return [
            GroceryItem.from_row(row, position)
            for position, row in enumerate(rows[1:])
        ]


class MutationAck(BaseModel):
    """Acknowledgement of an add/update/delete call."""
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return (self.status or "").lower() == "error"


class UploadedImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str


class HostError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None


class ImageHostResponse(BaseModel):
    """Image host reply: ``data.url`` on success, ``error.message`` on failure."""
    model_config = ConfigDict(extra="ignore")

    data: Optional[UploadedImage] = None
    error: Optional[HostError] = None
