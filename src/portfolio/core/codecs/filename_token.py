"""
Filename-encoded metadata tokens.

Layout of the stem: `{timestamp}-{id}-{encodedTitle}`. The id is a
five-segment UUID and the title is percent-encoded after removing
`. ' ( ) *`. Description and original name cannot be carried, so decoded
records are flagged `lossy`.
"""

import re
from datetime import datetime
from urllib.parse import quote, unquote

from aws_lambda_powertools import Logger

from portfolio.core.codecs.key_classification import (
    KeyShape,
    classify_key,
    split_token_segments,
)
from portfolio.core.models.errors import DecodeError
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.utils.constants import (
    FILENAME_TOKEN_STRIPPED_CHARS,
    MILLISECOND_TIMESTAMP_THRESHOLD,
    PHOTO_KEY_PREFIX,
    PLACEHOLDER_ID_PREFIX_LENGTH,
)
from portfolio.core.utils.time import from_epoch_millis

logger = Logger(UTC=True)

MAX_ENCODED_TITLE_LENGTH = 600

_STRIP_TABLE = {ord(ch): None for ch in FILENAME_TOKEN_STRIPPED_CHARS}
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def placeholder_title(record_id: str) -> str:
    """Best-effort title for a photo whose real title is unknown."""
    return f"Photo {record_id[:PLACEHOLDER_ID_PREFIX_LENGTH]}"


def encode_title(title: str, *, max_length: int = MAX_ENCODED_TITLE_LENGTH) -> str:
    """Percent-encode a title for use inside an object key.

    Whole characters are dropped from the end once the encoded form would
    exceed `max_length`, so an escape sequence is never cut in half.
    """
    parts: list[str] = []
    total = 0

    for ch in title.translate(_STRIP_TABLE):
        encoded = quote(ch, safe="")
        if total + len(encoded) > max_length:
            break
        parts.append(encoded)
        total += len(encoded)

    return "".join(parts)


def encode_filename_token(*, record_id: str, title: str, timestamp_millis: int) -> str:
    """Build the `{timestamp}-{id}-{encodedTitle}` stem."""
    return f"{timestamp_millis}-{record_id}-{encode_title(title)}"


def percent_decode(text: str) -> str:
    """Strict percent-decoding.

    Raises:
        DecodeError: On a dangling or non-hex escape, or invalid UTF-8.
    """
    if _MALFORMED_ESCAPE.search(text):
        raise DecodeError(
            message="Malformed percent-encoding",
            details={"value": text},
        )

    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError as exc:
        raise DecodeError(
            message="Percent-encoded value is not valid UTF-8",
            details={"value": text},
        ) from exc


def normalize_timestamp(raw: str) -> int:
    """Return epoch milliseconds for a timestamp written in seconds or millis."""
    value = int(raw)
    if value < MILLISECOND_TIMESTAMP_THRESHOLD:
        return value * 1000
    return value


def decode_filename_token(
    key: str,
    *,
    prefix: str = PHOTO_KEY_PREFIX,
    locator: str = "",
    size: int = 0,
) -> PhotoRecord:
    """Decode a filename-token key into a lossy PhotoRecord.

    A title that fails to percent-decode is kept verbatim; only a key that
    is not shaped like a token at all raises.

    Raises:
        DecodeError: If the key is not a filename token.
    """
    classified = classify_key(key, prefix=prefix)

    if classified.shape is not KeyShape.FILENAME_TOKEN:
        raise DecodeError(
            message="Key is not a filename token",
            details={"key": key, "shape": classified.shape.value},
        )

    sort_key = normalize_timestamp(classified.segments[0])
    record_id, title_part = split_token_segments(classified.segments)

    if title_part is None:
        title = placeholder_title(record_id)
    else:
        try:
            title = percent_decode(title_part)
        except DecodeError:
            logger.warning(
                "Title is not valid percent-encoding, using raw value",
                extra={"key": key},
            )
            title = title_part

        if not title.strip():
            title = placeholder_title(record_id)

    try:
        upload_date: datetime = from_epoch_millis(sort_key)
    except (OverflowError, OSError, ValueError) as exc:
        raise DecodeError(
            message="Timestamp out of range",
            details={"key": key},
        ) from exc

    return PhotoRecord(
        id=record_id,
        title=title,
        description="",
        url=locator,
        upload_date=upload_date,
        original_name=classified.file_name,
        size=size,
        sort_key=sort_key,
        key=key,
        lossy=True,
    )
