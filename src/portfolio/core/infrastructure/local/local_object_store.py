"""Filesystem-backed implementation of ObjectStore."""

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

from aws_lambda_powertools import Logger

from portfolio.core.models.errors import NotFoundError, ObjectConflictError, StorageError
from portfolio.core.repositories.object_store import ObjectStore, StoredObject
from portfolio.core.utils.constants import (
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
    ERROR_CODE_IMAGE_LIST_FAILED,
    ERROR_CODE_IMAGE_UPLOAD_FAILED,
    MIME_TYPE_EXTENSION_MAP,
)
from portfolio.core.utils.time import from_epoch_millis

logger = Logger(UTC=True)

_CONTENT_TYPE_BY_EXTENSION = {
    extension: mime_type
    for mime_type, extensions in MIME_TYPE_EXTENSION_MAP.items()
    for extension in extensions
}


class LocalObjectStore(ObjectStore):
    """Images kept as files below `root`, served under `public_prefix`.

    Keys map one-to-one onto relative paths. Writes go to a temporary
    file first and are renamed into place.
    """

    backend_name = "local"

    def __init__(self, root: Path, *, public_prefix: str = "/uploads") -> None:
        self._root = Path(root)
        self._public_prefix = public_prefix.rstrip("/")

    def locator_for(self, key: str) -> str:
        return f"{self._public_prefix}/{key}"

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise StorageError(message="Object key escapes storage root", details={"key": key})
        return path

    def put_object(
        self,
        *,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        path = self._path(key)

        try:
            if path.exists():
                if path.read_bytes() == data:
                    logger.info("Identical image already stored", extra={"key": key})
                    return self.locator_for(key)
                raise ObjectConflictError(
                    message="A different image is already stored under this key",
                    details={"key": key},
                )

            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".upload-")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.exception("Local image write failed", extra={"key": key})
            raise StorageError(
                message="Unable to upload image at this time",
                error_code=ERROR_CODE_IMAGE_UPLOAD_FAILED,
                details={"key": key},
            ) from exc

        logger.info("Image stored", extra={"key": key, "size": len(data)})
        return self.locator_for(key)

    def get_object(self, *, key: str) -> tuple[bytes, str]:
        path = self._path(key)

        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(message="Image not found", details={"key": key}) from exc
        except OSError as exc:
            logger.exception("Local image read failed", extra={"key": key})
            raise StorageError(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"key": key},
            ) from exc

        extension = path.suffix.lstrip(".").lower()
        return data, _CONTENT_TYPE_BY_EXTENSION.get(extension, "application/octet-stream")

    def delete_object(self, *, key: str) -> bool:
        path = self._path(key)

        try:
            path.unlink()
        except FileNotFoundError:
            logger.info("Image already absent", extra={"key": key})
            return False
        except OSError as exc:
            logger.exception("Local image delete failed", extra={"key": key})
            raise StorageError(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"key": key},
            ) from exc

        logger.info("Image deleted", extra={"key": key})
        return True

    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        objects: list[StoredObject] = []

        try:
            if not self._root.exists():
                return objects

            for path in sorted(self._root.rglob("*")):
                if not path.is_file() or path.name.startswith(".upload-"):
                    continue

                key = path.relative_to(self._root).as_posix()
                if not key.startswith(prefix):
                    continue

                stat = path.stat()
                objects.append(
                    StoredObject(
                        key=key,
                        locator=self.locator_for(key),
                        size=stat.st_size,
                        stored_at=from_epoch_millis(int(stat.st_mtime * 1000)),
                    )
                )
        except OSError as exc:
            logger.exception("Local image listing failed", extra={"prefix": prefix})
            raise StorageError(
                message="Unable to list images at this time",
                error_code=ERROR_CODE_IMAGE_LIST_FAILED,
                details={"prefix": prefix},
            ) from exc

        return objects
