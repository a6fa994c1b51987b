"""
Photo repository.

Combines an object store (image payloads) with a metadata store (one of the
four representations) and reconciles the two into the visible gallery.

Writes are two-step and never rolled back:

- `put()` stores the image first, then the metadata. If the metadata write
  fails the image stays behind as an orphan and `PartialWriteError`
  (`STORED_NOT_INDEXED`) is raised.
- `delete()` removes the image first, then the metadata. If the metadata
  removal fails the entry is dangling (invisible, since its object is
  gone) and `PartialWriteError` (`DELETED_STILL_INDEXED`) is raised.

`repair()` cleans up dangling metadata and reports orphans.
"""

import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from aws_lambda_powertools import Logger

from portfolio.core.codecs.reconciliation import ReconcileResult, reconcile
from portfolio.core.imaging.transform import TransformedImage, transform_image
from portfolio.core.infrastructure.metadata_stores import MetadataStore
from portfolio.core.models.errors import (
    BackendUnavailableError,
    NotFoundError,
    PartialWriteError,
    PortfolioError,
    ValidationError,
)
from portfolio.core.models.photo import MetadataVariant, PhotoRecord
from portfolio.core.repositories.object_store import ObjectStore
from portfolio.core.utils.constants import (
    DESCRIPTION_MAX_LENGTH,
    ERROR_CODE_DELETED_STILL_INDEXED,
    ERROR_CODE_FILE_SIZE_EXCEEDED,
    ERROR_CODE_PHOTO_NOT_FOUND,
    ERROR_CODE_STORED_NOT_INDEXED,
    MAX_FILE_SIZE,
    PHOTO_KEY_PREFIX,
    TITLE_MAX_LENGTH,
    get_max_file_size_mb,
)
from portfolio.core.utils.time import to_epoch_millis, utc_now

logger = Logger(UTC=True)


class SortKeyIssuer:
    """Issues strictly increasing epoch-millisecond sort keys."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def issue(self, moment: datetime) -> int:
        with self._lock:
            candidate = to_epoch_millis(moment)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


@dataclass
class RepairReport:
    removed_ids: list[str] = field(default_factory=list)
    orphan_keys: list[str] = field(default_factory=list)
    duplicate_keys: list[str] = field(default_factory=list)


class PhotoRepository:
    """Canonical access to photos across an object store and a metadata store."""

    def __init__(
        self,
        *,
        object_store: ObjectStore,
        metadata_store: MetadataStore,
        transform: Callable[[bytes], TransformedImage] = transform_image,
        clock: Callable[[], datetime] = utc_now,
        sort_keys: SortKeyIssuer | None = None,
        prefix: str = PHOTO_KEY_PREFIX,
    ) -> None:
        self._objects = object_store
        self._metadata = metadata_store
        self._transform = transform
        self._clock = clock
        self._sort_keys = sort_keys or SortKeyIssuer()
        self._prefix = prefix

    @property
    def variant(self) -> MetadataVariant:
        return self._metadata.variant

    def _log_context(self, **extra: object) -> dict[str, object]:
        return {
            "variant": self.variant.value,
            "object_backend": self._objects.backend_name,
            **extra,
        }

    def _reconcile(self) -> ReconcileResult:
        objects = self._objects.list_objects(prefix=self._prefix)
        metadata = self._metadata.load(objects)
        return reconcile(objects, metadata, prefix=self._prefix)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self) -> list[PhotoRecord]:
        """Every visible photo, newest first.

        A backend failure yields an empty gallery rather than an error.
        """
        try:
            records = self._reconcile().records
        except PortfolioError as exc:
            logger.warning(
                "Listing failed, returning an empty gallery",
                extra=self._log_context(
                    operation="list",
                    error_code=exc.error_code,
                    error=exc.message,
                ),
            )
            return []

        logger.debug("Listed photos", extra=self._log_context(count=len(records)))
        return records

    def get(self, photo_id: str) -> PhotoRecord:
        """Return one visible photo.

        Raises:
            NotFoundError: If no visible photo has this id
            BackendUnavailableError: If a backend cannot be reached
        """
        for record in self._reconcile().records:
            if record.id == photo_id:
                return record

        raise NotFoundError(
            message="Photo not found",
            error_code=ERROR_CODE_PHOTO_NOT_FOUND,
            details={"photo_id": photo_id},
        )

    def read_image(self, photo_id: str) -> tuple[bytes, str]:
        """Return (bytes, content type) of a visible photo's image."""
        record = self.get(photo_id)
        return self._objects.get_object(key=record.key)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(
        self,
        *,
        title: str,
        description: str,
        image_bytes: bytes,
        original_name: str,
    ) -> PhotoRecord:
        """Store a new photo and return its record.

        Raises:
            ValidationError: If the input is rejected; nothing is written
            BackendUnavailableError: If the image could not be stored
            PartialWriteError: If the image was stored but its metadata was not
        """
        title = (title or "").strip()
        description = (description or "").strip()
        self._validate(title=title, description=description, image_bytes=image_bytes)

        photo_id = str(uuid.uuid4())
        transformed = self._transform(image_bytes)

        upload_date = self._clock()
        sort_key = self._sort_keys.issue(upload_date)
        key = self._metadata.object_key(record_id=photo_id, title=title, sort_key=sort_key)

        record = PhotoRecord(
            id=photo_id,
            title=title,
            description=description,
            upload_date=upload_date,
            original_name=original_name or "",
            size=len(transformed.data),
            sort_key=sort_key,
            key=key,
            content_type=transformed.content_type,
        )
        object_metadata = self._metadata.object_metadata(record)

        locator = self._objects.put_object(
            key=key,
            data=transformed.data,
            content_type=transformed.content_type,
            metadata=object_metadata,
        )
        record = record.model_copy(update={"url": locator})

        try:
            self._metadata.save(record)
        except PortfolioError as exc:
            unavailable = isinstance(exc, BackendUnavailableError)
            logger.error(
                "Image stored but metadata write failed",
                extra=self._log_context(
                    operation="put",
                    photo_id=photo_id,
                    key=key,
                    backend_unavailable=unavailable,
                    error_code=exc.error_code,
                ),
            )
            raise PartialWriteError(
                message="Photo was stored but could not be added to the gallery",
                record=record,
                backend_unavailable=unavailable,
                error_code=ERROR_CODE_STORED_NOT_INDEXED,
                details={"photo_id": photo_id, "cause": exc.error_code},
            ) from exc

        logger.info(
            "Photo stored",
            extra=self._log_context(operation="put", photo_id=photo_id, key=key),
        )
        return record

    def delete(self, photo_id: str) -> PhotoRecord:
        """Delete a visible photo and return the record that was removed.

        Raises:
            NotFoundError: If no visible photo has this id
            BackendUnavailableError: If the image could not be deleted;
                metadata is left untouched
            PartialWriteError: If the image was deleted but metadata was not
        """
        record = self.get(photo_id)

        existed = self._objects.delete_object(key=record.key)
        if not existed:
            logger.info(
                "Image was already gone",
                extra=self._log_context(operation="delete", photo_id=photo_id, key=record.key),
            )

        try:
            self._metadata.remove(photo_id)
        except PortfolioError as exc:
            unavailable = isinstance(exc, BackendUnavailableError)
            logger.error(
                "Image deleted but metadata removal failed",
                extra=self._log_context(
                    operation="delete",
                    photo_id=photo_id,
                    backend_unavailable=unavailable,
                    error_code=exc.error_code,
                ),
            )
            raise PartialWriteError(
                message="Photo was deleted but is still listed in the index",
                record=record,
                backend_unavailable=unavailable,
                error_code=ERROR_CODE_DELETED_STILL_INDEXED,
                details={"photo_id": photo_id, "cause": exc.error_code},
            ) from exc

        logger.info(
            "Photo deleted",
            extra=self._log_context(operation="delete", photo_id=photo_id),
        )
        return record

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def repair(self) -> RepairReport:
        """Drop metadata whose image is gone and report images without metadata."""
        result = self._reconcile()
        removed = self._metadata.prune(result.dangling_ids)

        report = RepairReport(
            removed_ids=removed,
            orphan_keys=list(result.orphan_keys),
            duplicate_keys=list(result.duplicate_keys),
        )
        logger.info(
            "Repair finished",
            extra=self._log_context(
                removed=len(report.removed_ids),
                orphans=len(report.orphan_keys),
                duplicates=len(report.duplicate_keys),
            ),
        )
        return report

    def connection_states(self) -> dict[str, str]:
        return {**self._objects.connection_states(), **self._metadata.connection_states()}

    def recover(self) -> dict[str, str]:
        """Reconnect every degraded backend and return the resulting states.

        Raises:
            BackendUnavailableError: If any backend is still unreachable
        """
        failures: list[str] = []

        for name, reconnect in (
            (self._objects.backend_name, self._objects.reconnect),
            (self.variant.value, self._metadata.reconnect),
        ):
            try:
                reconnect()
            except BackendUnavailableError:
                failures.append(name)

        states = self.connection_states()
        if failures:
            raise BackendUnavailableError(
                message="Some backends are still unavailable",
                details={"backends": failures, "states": states},
            )

        return states

    @staticmethod
    def _validate(*, title: str, description: str, image_bytes: bytes) -> None:
        if not title:
            raise ValidationError(message="Title is required", details={"field": "title"})

        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(
                message=f"Title must be at most {TITLE_MAX_LENGTH} characters",
                details={"field": "title"},
            )

        if len(description) > DESCRIPTION_MAX_LENGTH:
            raise ValidationError(
                message=f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
                details={"field": "description"},
            )

        if not image_bytes:
            raise ValidationError(message="Image is required", details={"field": "photo"})

        if len(image_bytes) > MAX_FILE_SIZE:
            raise ValidationError(
                message=f"File size exceeds maximum allowed size of {get_max_file_size_mb()}MB",
                error_code=ERROR_CODE_FILE_SIZE_EXCEEDED,
                details={"size": len(image_bytes), "max_size": MAX_FILE_SIZE},
            )
