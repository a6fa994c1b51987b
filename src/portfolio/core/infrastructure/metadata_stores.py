"""
Per-variant metadata persistence.

Each store wraps the pure codecs with the I/O of one representation:

- `SidecarMetadataStore`: one JSON document per photo (`photo:<id>`).
- `NativeMetadataStore`: attributes on the image object itself.
- `FilenameMetadataStore`: title and timestamp encoded in the object key.
- `BulkMetadataStore`: one JSON array under a single key (`photos`).

`load()` returns decodable metadata keyed by photo id; reconciliation with
the object listing happens in the repository.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from aws_lambda_powertools import Logger

from portfolio.core.codecs.filename_token import encode_filename_token
from portfolio.core.codecs.key_classification import classify_key
from portfolio.core.codecs.metadata_codec import (
    decode_bulk_collection,
    decode_bulk_items,
    decode_native_metadata,
    decode_sidecar_json,
    encode_bulk_items,
    encode_native_metadata,
    encode_sidecar_json,
    has_native_metadata,
    placeholder_record,
)
from portfolio.core.models.errors import (
    ConfigurationError,
    DecodeError,
    NotFoundError,
    StorageError,
)
from portfolio.core.models.photo import MetadataVariant, PhotoRecord
from portfolio.core.repositories.key_value_store import KeyValueStore
from portfolio.core.repositories.object_store import ObjectStore, StoredObject
from portfolio.core.utils.constants import (
    BULK_COLLECTION_KEY,
    ERROR_CODE_METADATA_DECODE_FAILED,
    PHOTO_KEY_PREFIX,
    SIDECAR_KEY_PREFIX,
    TRANSFORM_EXTENSION,
)

logger = Logger(UTC=True)


class MetadataStore(ABC):
    """Reads and writes photo metadata in one representation."""

    variant: MetadataVariant

    def __init__(self, *, prefix: str = PHOTO_KEY_PREFIX) -> None:
        self.prefix = prefix

    def object_key(self, *, record_id: str, title: str, sort_key: int) -> str:
        """Key under which the image of a new photo is stored."""
        return f"{self.prefix}{record_id}.{TRANSFORM_EXTENSION}"

    def object_metadata(self, record: PhotoRecord) -> dict[str, str]:
        """Attributes to attach to the image object.

        Called before the image is written so that an unencodable record is
        rejected without side effects.
        """
        return {}

    @abstractmethod
    def load(self, objects: list[StoredObject]) -> dict[str, PhotoRecord]:
        """Return every decodable record keyed by photo id."""

    @abstractmethod
    def save(self, record: PhotoRecord) -> None:
        """Persist metadata for a photo whose image is already stored."""

    @abstractmethod
    def remove(self, record_id: str) -> bool:
        """Remove metadata for a photo. Returns False when nothing was stored."""

    def prune(self, record_ids: Iterable[str]) -> list[str]:
        """Remove metadata for several photos, returning the ids removed."""
        return [record_id for record_id in record_ids if self.remove(record_id)]

    def connection_states(self) -> dict[str, str]:
        return {}

    def reconnect(self) -> None:
        """Re-establish degraded client connections. No-op by default."""


class SidecarMetadataStore(MetadataStore):
    variant = MetadataVariant.SIDECAR_JSON

    def __init__(self, kv: KeyValueStore, *, prefix: str = PHOTO_KEY_PREFIX) -> None:
        super().__init__(prefix=prefix)
        self._kv = kv

    @staticmethod
    def document_key(record_id: str) -> str:
        return f"{SIDECAR_KEY_PREFIX}{record_id}"

    def load(self, objects: list[StoredObject]) -> dict[str, PhotoRecord]:
        records: dict[str, PhotoRecord] = {}

        for document_key in self._kv.scan_keys(SIDECAR_KEY_PREFIX):
            record_id = document_key[len(SIDECAR_KEY_PREFIX):]
            raw = self._kv.get(document_key)
            if raw is None:
                continue

            try:
                record = decode_sidecar_json(raw)
                if record.id != record_id:
                    raise DecodeError(
                        message="Sidecar id does not match its key",
                        details={"key": document_key, "id": record.id},
                    )
            except DecodeError as exc:
                logger.warning(
                    "Undecodable sidecar replaced by placeholder",
                    extra={"key": document_key, "details": exc.details},
                )
                record = placeholder_record(record_id)

            records[record_id] = record

        return records

    def save(self, record: PhotoRecord) -> None:
        self._kv.set(self.document_key(record.id), encode_sidecar_json(record))

    def remove(self, record_id: str) -> bool:
        return self._kv.delete(self.document_key(record_id))

    def connection_states(self) -> dict[str, str]:
        return self._kv.connection_states()

    def reconnect(self) -> None:
        self._kv.reconnect()


class NativeMetadataStore(MetadataStore):
    """Metadata travels with the image object, so writes are a no-op here."""

    variant = MetadataVariant.NATIVE

    def __init__(self, object_store: ObjectStore, *, prefix: str = PHOTO_KEY_PREFIX) -> None:
        if not object_store.supports_native_metadata:
            raise ConfigurationError(
                message="Object store does not support native metadata",
                details={"backend": object_store.backend_name},
            )
        super().__init__(prefix=prefix)
        self._objects = object_store

    def object_metadata(self, record: PhotoRecord) -> dict[str, str]:
        return encode_native_metadata(record)

    def load(self, objects: list[StoredObject]) -> dict[str, PhotoRecord]:
        records: dict[str, PhotoRecord] = {}

        for stored in objects:
            record_id = classify_key(stored.key, prefix=self.prefix).record_id

            try:
                metadata = self._objects.read_metadata(key=stored.key)
            except NotFoundError:
                logger.info("Object vanished while reading metadata", extra={"key": stored.key})
                continue

            if not has_native_metadata(metadata):
                continue

            try:
                record = decode_native_metadata(metadata)
                if record.id != record_id:
                    raise DecodeError(
                        message="Object metadata id does not match its key",
                        details={"key": stored.key, "id": record.id},
                    )
            except DecodeError as exc:
                logger.warning(
                    "Undecodable object metadata replaced by placeholder",
                    extra={"key": stored.key, "details": exc.details},
                )
                record = placeholder_record(record_id)

            records.setdefault(record_id, record)

        return records

    def save(self, record: PhotoRecord) -> None:
        return None

    def remove(self, record_id: str) -> bool:
        return False


class FilenameMetadataStore(MetadataStore):
    """Title and timestamp live in the object key; nothing else is stored."""

    variant = MetadataVariant.FILENAME

    def object_key(self, *, record_id: str, title: str, sort_key: int) -> str:
        token = encode_filename_token(record_id=record_id, title=title, timestamp_millis=sort_key)
        return f"{self.prefix}{token}.{TRANSFORM_EXTENSION}"

    def load(self, objects: list[StoredObject]) -> dict[str, PhotoRecord]:
        return {}

    def save(self, record: PhotoRecord) -> None:
        if record.description:
            logger.info(
                "Description is not kept by filename metadata",
                extra={"id": record.id},
            )

    def remove(self, record_id: str) -> bool:
        return False


class BulkMetadataStore(MetadataStore):
    """All photos in one JSON array, rewritten on every change.

    The read-modify-write cycle is serialized by a per-collection lock, so
    writers sharing this instance never lose each other's records. Writers
    in other processes are not coordinated and the last write wins.
    """

    variant = MetadataVariant.BULK

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        collection_key: str = BULK_COLLECTION_KEY,
        prefix: str = PHOTO_KEY_PREFIX,
    ) -> None:
        super().__init__(prefix=prefix)
        self._kv = kv
        self.collection_key = collection_key
        self._lock = threading.Lock()

    def load(self, objects: list[StoredObject]) -> dict[str, PhotoRecord]:
        try:
            decoded = decode_bulk_collection(self._kv.get(self.collection_key))
        except DecodeError as exc:
            logger.error(
                "Bulk collection is unreadable, treating it as empty",
                extra={"key": self.collection_key, "details": exc.details},
            )
            return {}

        records: dict[str, PhotoRecord] = {}
        for record in decoded:
            if record.id in records:
                logger.warning("Duplicate id in bulk collection", extra={"id": record.id})
                continue
            records[record.id] = record
        return records

    def save(self, record: PhotoRecord) -> None:
        with self._lock:
            items = [item for item in self._read_for_update() if _item_id(item) != record.id]
            items.append(record.to_wire())
            self._kv.set(self.collection_key, encode_bulk_items(items))

        logger.info(
            "Photo added to bulk collection",
            extra={"id": record.id, "count": len(items)},
        )

    def remove(self, record_id: str) -> bool:
        return bool(self.prune([record_id]))

    def prune(self, record_ids: Iterable[str]) -> list[str]:
        doomed = set(record_ids)
        if not doomed:
            return []

        with self._lock:
            items = self._read_for_update()
            kept = [item for item in items if _item_id(item) not in doomed]
            removed = sorted({_item_id(item) for item in items} & doomed)
            if removed:
                self._kv.set(self.collection_key, encode_bulk_items(kept))

        return removed

    def connection_states(self) -> dict[str, str]:
        return self._kv.connection_states()

    def reconnect(self) -> None:
        self._kv.reconnect()

    def _read_for_update(self) -> list[Any]:
        """Parse the raw collection, refusing to continue if it is corrupt.

        Items are kept verbatim so undecodable entries survive a rewrite.
        """
        try:
            return decode_bulk_items(self._kv.get(self.collection_key))
        except DecodeError as exc:
            logger.error(
                "Refusing to rewrite an unreadable bulk collection",
                extra={"key": self.collection_key, "details": exc.details},
            )
            raise StorageError(
                message="Photo index is corrupt and cannot be updated",
                error_code=ERROR_CODE_METADATA_DECODE_FAILED,
                details={"key": self.collection_key},
            ) from exc


def _item_id(item: Any) -> str | None:
    if isinstance(item, dict) and isinstance(item.get("id"), str):
        return str(item["id"]).strip()
    return None
