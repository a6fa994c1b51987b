"""
Encoding and decoding of photo metadata representations.

Supported representations:
- Sidecar JSON: one JSON document per photo in a key-value store.
- Native object metadata: string attributes attached to the image object.
- Bulk collection: one key holding a JSON array of every photo.
- Filename token: see `portfolio.core.codecs.filename_token`.

All functions are pure. Decoders raise `DecodeError` for a single bad
item; collection decoders substitute placeholders per item instead of
failing the whole collection.
"""

import json
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from urllib.parse import quote

from aws_lambda_powertools import Logger
from pydantic import ValidationError as PydanticValidationError

from portfolio.core.codecs.filename_token import percent_decode, placeholder_title
from portfolio.core.models.errors import DecodeError, ValidationError
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.utils.constants import (
    ERROR_CODE_METADATA_TOO_LARGE,
    NATIVE_METADATA_MAX_BYTES,
    NATIVE_METADATA_PREFIX,
)
from portfolio.core.utils.time import from_epoch_millis, to_epoch_millis

logger = Logger(UTC=True)

NATIVE_FIELDS: tuple[str, ...] = (
    "id",
    "title",
    "description",
    "upload-date",
    "original-name",
    "size",
    "sort-key",
    "content-type",
)
_NATIVE_TEXT_FIELDS = frozenset({"title", "description", "original-name"})


def placeholder_record(
    record_id: str,
    *,
    key: str = "",
    locator: str = "",
    size: int = 0,
    stored_at: datetime | None = None,
    file_name: str = "",
) -> PhotoRecord:
    """Build the stand-in record used when real metadata is unavailable.

    The title is derived from the id and the upload date from the object's
    storage time, so the photo still sorts sensibly.
    """
    upload_date = stored_at or from_epoch_millis(0)

    return PhotoRecord(
        id=record_id,
        title=placeholder_title(record_id),
        description="",
        url=locator,
        upload_date=upload_date,
        original_name=file_name,
        size=size,
        sort_key=to_epoch_millis(upload_date),
        key=key,
        placeholder=True,
        lossy=True,
    )


def _validate_record(data: Any, *, source: str) -> PhotoRecord:
    if not isinstance(data, dict):
        raise DecodeError(
            message="Metadata item is not an object",
            details={"source": source, "type": type(data).__name__},
        )

    try:
        return PhotoRecord.model_validate(data)
    except PydanticValidationError as exc:
        raise DecodeError(
            message="Metadata item failed validation",
            details={
                "source": source,
                "id": data.get("id"),
                "errors": [
                    ".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()
                ],
            },
        ) from exc


def _load_json(raw: str | bytes, *, source: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(
            message="Metadata is not valid JSON",
            details={"source": source},
        ) from exc


# ----------------------------------------------------------------------------
# Sidecar JSON
# ----------------------------------------------------------------------------


def encode_sidecar_json(record: PhotoRecord) -> str:
    return json.dumps(record.to_wire(), ensure_ascii=False)


def decode_sidecar_json(raw: str | bytes) -> PhotoRecord:
    """Decode one sidecar document.

    Raises:
        DecodeError: If the document is not a valid photo record.
    """
    return _validate_record(_load_json(raw, source="sidecar_json"), source="sidecar_json")


# ----------------------------------------------------------------------------
# Bulk collection
# ----------------------------------------------------------------------------


def encode_bulk_collection(records: Iterable[PhotoRecord]) -> str:
    return encode_bulk_items(record.to_wire() for record in records)


def encode_bulk_items(items: Iterable[Any]) -> str:
    return json.dumps(list(items), ensure_ascii=False, indent=2)


def decode_bulk_items(raw: str | bytes | None) -> list[Any]:
    """Parse a bulk collection into raw items without validating them.

    Raises:
        DecodeError: When the document as a whole is not a JSON array.
    """
    if raw is None or not raw.strip():
        return []

    data = _load_json(raw, source="bulk")
    if not isinstance(data, list):
        raise DecodeError(
            message="Bulk collection is not a JSON array",
            details={"type": type(data).__name__},
        )
    return data


def decode_bulk_collection(raw: str | bytes | None) -> list[PhotoRecord]:
    """Decode a bulk collection, one item at a time.

    Items that fail validation but carry a usable `id` become placeholder
    records; items without an id cannot be matched to an image and are
    dropped with a warning.

    Raises:
        DecodeError: Only when the document as a whole is not a JSON array.
    """
    data = decode_bulk_items(raw)

    records: list[PhotoRecord] = []
    for index, item in enumerate(data):
        try:
            records.append(_validate_record(item, source="bulk"))
        except DecodeError as exc:
            record_id = item.get("id") if isinstance(item, dict) else None
            if isinstance(record_id, str) and record_id.strip():
                logger.warning(
                    "Undecodable bulk item replaced by placeholder",
                    extra={"index": index, "id": record_id, "details": exc.details},
                )
                records.append(
                    placeholder_record(
                        record_id.strip(),
                        file_name=str(item.get("originalName") or ""),
                    )
                )
            else:
                logger.warning(
                    "Dropping bulk item without an id",
                    extra={"index": index, "details": exc.details},
                )

    return records


# ----------------------------------------------------------------------------
# Native object metadata
# ----------------------------------------------------------------------------


def _native_key(field: str) -> str:
    return f"{NATIVE_METADATA_PREFIX}{field}"


def encode_native_metadata(record: PhotoRecord) -> dict[str, str]:
    """Encode a record as object metadata.

    Text values are percent-encoded so they survive ASCII-only metadata
    headers.

    Raises:
        ValidationError: If the encoded metadata exceeds the backend limit.
    """
    values = {
        "id": record.id,
        "title": quote(record.title, safe=""),
        "description": quote(record.description, safe=""),
        "upload-date": record.upload_date.isoformat(),
        "original-name": quote(record.original_name, safe=""),
        "size": str(record.size),
        "sort-key": str(record.sort_key),
        "content-type": record.content_type,
    }
    metadata = {_native_key(field): value for field, value in values.items()}

    encoded_size = sum(len(k) + len(v) for k, v in metadata.items())
    if encoded_size > NATIVE_METADATA_MAX_BYTES:
        raise ValidationError(
            message="Title and description are too long for this storage backend",
            error_code=ERROR_CODE_METADATA_TOO_LARGE,
            details={"size": encoded_size, "limit": NATIVE_METADATA_MAX_BYTES},
        )

    return metadata


def has_native_metadata(metadata: Mapping[str, str]) -> bool:
    return bool(metadata.get(_native_key("id")))


def decode_native_metadata(metadata: Mapping[str, str]) -> PhotoRecord:
    """Decode object metadata written by `encode_native_metadata`.

    Raises:
        DecodeError: If required attributes are missing or malformed.
    """
    lowered = {str(k).lower(): v for k, v in metadata.items()}

    raw: dict[str, str] = {}
    for field in NATIVE_FIELDS:
        value = lowered.get(_native_key(field))
        if value is not None:
            raw[field] = value

    if not raw.get("id"):
        raise DecodeError(message="Object has no photo metadata")

    data: dict[str, Any] = {"id": raw["id"]}
    for field in _NATIVE_TEXT_FIELDS:
        if field in raw:
            data[field] = percent_decode(raw[field])

    try:
        if "size" in raw:
            data["size"] = int(raw["size"])
        if "sort-key" in raw:
            data["sort_key"] = int(raw["sort-key"])
    except ValueError as exc:
        raise DecodeError(
            message="Numeric metadata attribute is malformed",
            details={"id": raw["id"]},
        ) from exc

    if "upload-date" in raw:
        data["upload_date"] = raw["upload-date"]
    if "content-type" in raw:
        data["content_type"] = raw["content-type"]
    if "original-name" in data:
        data["original_name"] = data.pop("original-name")

    return _validate_record(data, source="native")
