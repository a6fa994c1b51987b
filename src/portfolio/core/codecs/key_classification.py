"""
Structural classification of object keys.

Several naming schemes can coexist under the same prefix once data has
been migrated between storage variants, so every key is classified on its
own before a decode path is chosen. Nothing here performs I/O.
"""

from dataclasses import dataclass
from enum import Enum

from portfolio.core.utils.constants import FILENAME_TOKEN_ID_SEGMENTS

UUID_SEGMENT_LENGTHS: tuple[int, ...] = (8, 4, 4, 4, 12)
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class KeyShape(str, Enum):
    """Known key layouts."""

    UUID = "uuid"
    """`<prefix><uuid>.<ext>`: id-addressed, metadata lives elsewhere."""

    FILENAME_TOKEN = "filename_token"
    """`<prefix><timestamp>-<id>-<encodedTitle>.<ext>`: metadata in the name."""

    OPAQUE = "opaque"
    """Anything else. The whole stem is taken as the id."""


@dataclass(frozen=True)
class ClassifiedKey:
    key: str
    file_name: str
    stem: str
    segments: tuple[str, ...]
    shape: KeyShape

    @property
    def record_id(self) -> str:
        if self.shape is KeyShape.FILENAME_TOKEN:
            record_id, _ = split_token_segments(self.segments)
            return record_id
        return self.stem


def is_uuid_segment(segment: str, length: int) -> bool:
    return len(segment) == length and all(ch in _HEX_DIGITS for ch in segment)


def is_uuid_shaped(segments: tuple[str, ...] | list[str]) -> bool:
    """True when exactly five segments match the 8-4-4-4-12 hex layout."""
    if len(segments) != FILENAME_TOKEN_ID_SEGMENTS:
        return False
    return all(
        is_uuid_segment(segment, length)
        for segment, length in zip(segments, UUID_SEGMENT_LENGTHS)
    )


def is_timestamp_segment(segment: str) -> bool:
    return bool(segment) and segment.isascii() and segment.isdigit()


def split_token_segments(segments: tuple[str, ...]) -> tuple[str, str | None]:
    """Split filename-token segments into (id, encoded title).

    `segments[0]` is the timestamp. The id is exactly the next five
    segments when they are UUID-shaped; otherwise every remaining segment
    is the literal id and there is no title part (None).
    """
    rest = segments[1:]
    candidate = rest[:FILENAME_TOKEN_ID_SEGMENTS]

    if is_uuid_shaped(candidate):
        title_part = "-".join(rest[FILENAME_TOKEN_ID_SEGMENTS:])
        return "-".join(candidate), title_part

    return "-".join(rest), None


def split_key(key: str, *, prefix: str = "") -> tuple[str, str]:
    """Return (file name, stem) for a key, dropping prefix and extension."""
    name = key[len(prefix):] if prefix and key.startswith(prefix) else key
    file_name = name.rsplit("/", 1)[-1]
    stem = file_name.rsplit(".", 1)[0] if "." in file_name else file_name
    return file_name, stem


def classify_key(key: str, *, prefix: str = "") -> ClassifiedKey:
    """Classify one object key by the shape of its stem."""
    file_name, stem = split_key(key, prefix=prefix)
    segments = tuple(stem.split("-"))

    if is_uuid_shaped(segments):
        shape = KeyShape.UUID
    elif len(segments) >= 2 and is_timestamp_segment(segments[0]) and any(segments[1:]):
        shape = KeyShape.FILENAME_TOKEN
    else:
        shape = KeyShape.OPAQUE

    return ClassifiedKey(
        key=key,
        file_name=file_name,
        stem=stem,
        segments=segments,
        shape=shape,
    )
