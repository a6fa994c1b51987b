"""Canonical photo record model and API response shapes."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    model_validator,
)
from pydantic.alias_generators import to_camel

from portfolio.core.utils.constants import TRANSFORM_CONTENT_TYPE
from portfolio.core.utils.time import to_epoch_millis


class MetadataVariant(str, Enum):
    """Representation used to persist photo metadata."""

    SIDECAR_JSON = "sidecar_json"
    NATIVE = "native"
    FILENAME = "filename"
    BULK = "bulk"


class PhotoRecord(BaseModel):
    """One photo as seen by the gallery.

    Serialized with camelCase keys, which is also the layout of the
    legacy `photos.json` collection. `sort_key` is epoch milliseconds
    and falls back to `upload_date` for records written before it existed.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    id: StrictStr = Field(..., min_length=1, description="Unique photo identifier")
    title: StrictStr = Field(..., min_length=1, description="Display title")
    description: StrictStr = Field("", description="Optional description")
    url: StrictStr = Field("", description="Locator of the stored image")
    upload_date: datetime = Field(..., description="Upload timestamp (UTC)")
    original_name: StrictStr = Field("", description="File name supplied by the uploader")
    size: StrictInt = Field(0, ge=0, description="Stored image size in bytes")
    sort_key: StrictInt = Field(..., description="Ordering value, epoch milliseconds")

    key: StrictStr = Field("", description="Object store key of the image")
    content_type: StrictStr = Field(TRANSFORM_CONTENT_TYPE, description="MIME type of the image")
    placeholder: StrictBool = Field(False, description="Synthesized because metadata was unusable")
    lossy: StrictBool = Field(False, description="Decoded from a representation missing some fields")

    @model_validator(mode="before")
    @classmethod
    def derive_sort_key(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        if data.get("sortKey") is not None or data.get("sort_key") is not None:
            return data

        raw_date = data.get("uploadDate", data.get("upload_date"))
        if isinstance(raw_date, str):
            try:
                raw_date = datetime.fromisoformat(raw_date)
            except ValueError:
                return data

        if isinstance(raw_date, datetime):
            return {**data, "sort_key": to_epoch_millis(raw_date)}

        return data

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)

    @staticmethod
    def ordering_key(record: "PhotoRecord") -> tuple[int, str]:
        """Sort key for newest-first order with ascending id tie-break."""
        return (-record.sort_key, record.id)


class PaginationInfo(BaseModel):
    """Pagination metadata for gallery list responses."""

    limit: StrictInt = Field(..., description="Maximum number of photos requested")
    offset: StrictInt = Field(..., description="Current offset in the gallery")
    has_more: StrictBool = Field(..., description="Whether more photos follow this page")
    next_offset: StrictInt | None = Field(None, description="Offset of the next page")


class PhotoListResponse(BaseModel):
    """Paginated response for listing photos."""

    photos: list[dict[str, Any]] = Field(..., description="Photo records, newest first")
    total_count: StrictInt = Field(..., description="Total number of visible photos")
    returned_count: StrictInt = Field(..., description="Number of photos in this page")
    pagination: PaginationInfo = Field(..., description="Pagination metadata")
