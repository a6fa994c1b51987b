"""
Reconciliation of object listings with decoded metadata.

Given every stored image object and whatever metadata the active variant
could decode (keyed by photo id), derive the visible gallery:

- an object with metadata becomes that record, pointed at the object;
- an object without metadata is decoded from its key when the key is a
  filename token, otherwise it becomes a placeholder (an orphan);
- metadata without an object is dangling and is not shown;
- two objects resolving to the same id are never merged, the first key
  in lexical order wins.

The result is sorted newest first with ascending id as the tie-break.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from aws_lambda_powertools import Logger

from portfolio.core.codecs.filename_token import decode_filename_token
from portfolio.core.codecs.key_classification import KeyShape, classify_key
from portfolio.core.codecs.metadata_codec import placeholder_record
from portfolio.core.models.errors import DecodeError
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.repositories.object_store import StoredObject

logger = Logger(UTC=True)


@dataclass
class ReconcileResult:
    records: list[PhotoRecord] = field(default_factory=list)
    orphan_keys: list[str] = field(default_factory=list)
    dangling_ids: list[str] = field(default_factory=list)
    duplicate_keys: list[str] = field(default_factory=list)


def placeholder_for_object(record_id: str, stored: StoredObject, *, prefix: str) -> PhotoRecord:
    classified = classify_key(stored.key, prefix=prefix)
    return placeholder_record(
        record_id,
        key=stored.key,
        locator=stored.locator,
        size=stored.size,
        stored_at=stored.stored_at,
        file_name=classified.file_name,
    )


def attach_object(record: PhotoRecord, stored: StoredObject, *, prefix: str) -> PhotoRecord:
    """Point a decoded record at the object that backs it."""
    if record.placeholder:
        return placeholder_for_object(record.id, stored, prefix=prefix)

    return record.model_copy(
        update={
            "key": stored.key,
            "url": stored.locator or record.url,
            "size": record.size or stored.size,
        }
    )


def sort_records(records: Iterable[PhotoRecord]) -> list[PhotoRecord]:
    return sorted(records, key=PhotoRecord.ordering_key)


def reconcile(
    objects: Iterable[StoredObject],
    metadata: Mapping[str, PhotoRecord],
    *,
    prefix: str,
) -> ReconcileResult:
    result = ReconcileResult()
    visible: dict[str, PhotoRecord] = {}

    for stored in sorted(objects, key=lambda obj: obj.key):
        classified = classify_key(stored.key, prefix=prefix)
        record_id = classified.record_id

        if record_id in visible:
            logger.warning(
                "Second object resolves to an existing photo id, ignoring it",
                extra={"id": record_id, "key": stored.key},
            )
            result.duplicate_keys.append(stored.key)
            continue

        record = metadata.get(record_id)

        if record is None and classified.shape is KeyShape.FILENAME_TOKEN:
            try:
                record = decode_filename_token(
                    stored.key,
                    prefix=prefix,
                    locator=stored.locator,
                    size=stored.size,
                )
            except DecodeError as exc:
                logger.warning(
                    "Undecodable filename token replaced by placeholder",
                    extra={"key": stored.key, "details": exc.details},
                )

        if record is None:
            result.orphan_keys.append(stored.key)
            record = placeholder_for_object(record_id, stored, prefix=prefix)

        visible[record_id] = attach_object(record, stored, prefix=prefix)

    result.dangling_ids = sorted(set(metadata) - set(visible))
    if result.dangling_ids:
        logger.info(
            "Metadata without an image object is hidden",
            extra={"count": len(result.dangling_ids)},
        )

    result.records = sort_records(visible.values())
    return result
