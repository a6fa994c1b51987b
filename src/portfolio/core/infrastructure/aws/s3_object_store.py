"""S3-backed implementation of ObjectStore."""

import hashlib
from collections.abc import Mapping
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from portfolio.core.infrastructure.adapters.s3_adapter import S3Adapter, S3AdapterProtocol
from portfolio.core.infrastructure.aws.errors import (
    TRANSPORT_ERRORS,
    client_error_code,
    is_not_found,
)
from portfolio.core.models.errors import (
    BackendUnavailableError,
    NotFoundError,
    ObjectConflictError,
    PortfolioError,
    StorageError,
)
from portfolio.core.repositories.object_store import ObjectStore, StoredObject
from portfolio.core.utils.constants import (
    ERROR_CODE_IMAGE_DELETE_FAILED,
    ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
    ERROR_CODE_IMAGE_LIST_FAILED,
    ERROR_CODE_IMAGE_UPLOAD_FAILED,
    ERROR_CODE_METADATA_READ_FAILED,
)

logger = Logger(UTC=True)


class S3ObjectStore(ObjectStore):
    """Image storage backed by Amazon S3.

    All boto3 errors are caught and translated into domain errors.
    Transport failures also mark the adapter connection as degraded.
    """

    backend_name = "s3"
    supports_native_metadata = True

    def __init__(
        self,
        adapter: S3AdapterProtocol | None = None,
        *,
        public_base_url: str | None = None,
    ) -> None:
        self._s3: S3AdapterProtocol = adapter or S3Adapter()
        self._public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def locator_for(self, key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{key}"
        return f"https://{self._s3.bucket}.s3.{self._s3.region}.amazonaws.com/{key}"

    def put_object(
        self,
        *,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        logger.debug("Uploading image", extra={"key": key, "size": len(data)})

        existing = self._head(key, operation="put_object")
        if existing is not None:
            if _etag(existing) == hashlib.md5(data).hexdigest():
                logger.info("Identical image already stored", extra={"key": key})
                return self.locator_for(key)

            raise ObjectConflictError(
                message="A different image is already stored under this key",
                details={"key": key},
            )

        try:
            self._s3.put_object(
                key=key,
                body=data,
                content_type=content_type,
                metadata=metadata or {},
            )
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="put_object", key=key) from exc
        except ClientError as exc:
            logger.error(
                "S3 upload failed",
                extra={"key": key, "error_code": client_error_code(exc)},
            )
            raise StorageError(
                message="Unable to upload image at this time",
                error_code=ERROR_CODE_IMAGE_UPLOAD_FAILED,
                details={"key": key},
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected error uploading image")
            raise StorageError(
                message="Unable to upload image at this time",
                error_code=ERROR_CODE_IMAGE_UPLOAD_FAILED,
                details={"key": key},
            ) from exc

        logger.info("Image uploaded successfully", extra={"key": key})
        return self.locator_for(key)

    def get_object(self, *, key: str) -> tuple[bytes, str]:
        logger.debug("Downloading image", extra={"key": key})

        try:
            response = self._s3.get_object(key=key)
            body: bytes = response["Body"].read()
            content_type = str(response.get("ContentType") or "application/octet-stream")
            return body, content_type
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="get_object", key=key) from exc
        except ClientError as exc:
            if is_not_found(exc):
                raise NotFoundError(message="Image not found", details={"key": key}) from exc

            logger.error("S3 download failed", extra={"key": key})
            raise StorageError(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"key": key},
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected error downloading image")
            raise StorageError(
                message="Unable to download image at this time",
                error_code=ERROR_CODE_IMAGE_DOWNLOAD_FAILED,
                details={"key": key},
            ) from exc

    def delete_object(self, *, key: str) -> bool:
        logger.debug("Deleting image", extra={"key": key})

        # S3 deletes succeed for missing keys, so existence is checked first.
        if self._head(key, operation="delete_object") is None:
            logger.info("Image already absent", extra={"key": key})
            return False

        try:
            self._s3.delete_object(key=key)
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="delete_object", key=key) from exc
        except ClientError as exc:
            logger.error("S3 deletion failed", extra={"key": key})
            raise StorageError(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"key": key},
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected error deleting image")
            raise StorageError(
                message="Unable to delete image at this time",
                error_code=ERROR_CODE_IMAGE_DELETE_FAILED,
                details={"key": key},
            ) from exc

        logger.info("Image deleted successfully", extra={"key": key})
        return True

    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        logger.debug("Listing images", extra={"prefix": prefix})

        try:
            return [
                StoredObject(
                    key=str(item["Key"]),
                    locator=self.locator_for(str(item["Key"])),
                    size=int(item.get("Size", 0)),
                    stored_at=item.get("LastModified"),
                )
                for item in self._s3.iter_objects(prefix=prefix)
            ]
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="list_objects", key=prefix) from exc
        except ClientError as exc:
            logger.error("S3 listing failed", extra={"prefix": prefix})
            raise StorageError(
                message="Unable to list images at this time",
                error_code=ERROR_CODE_IMAGE_LIST_FAILED,
                details={"prefix": prefix},
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected error listing images")
            raise StorageError(
                message="Unable to list images at this time",
                error_code=ERROR_CODE_IMAGE_LIST_FAILED,
                details={"prefix": prefix},
            ) from exc

    def read_metadata(self, *, key: str) -> dict[str, str]:
        head = self._head(key, operation="read_metadata")
        if head is None:
            raise NotFoundError(message="Image not found", details={"key": key})

        return {str(k): str(v) for k, v in (head.get("Metadata") or {}).items()}

    def connection_states(self) -> dict[str, str]:
        return {self._s3.connection.name: self._s3.connection.state.value}

    def reconnect(self) -> None:
        self._s3.connection.reconnect()

    def _head(self, key: str, *, operation: str) -> Mapping[str, Any] | None:
        """Return object headers, or None when the key does not exist."""
        try:
            return self._s3.head_object(key=key)
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation=operation, key=key) from exc
        except ClientError as exc:
            if is_not_found(exc):
                return None

            logger.error(
                "S3 head_object failed",
                extra={"key": key, "operation": operation},
            )
            raise StorageError(
                message="Unable to read image metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"key": key},
            ) from exc

    def _unavailable(self, exc: Exception, *, operation: str, key: str) -> BackendUnavailableError:
        self._s3.connection.mark_degraded(exc)
        logger.warning(
            "S3 unreachable",
            extra={"operation": operation, "key": key, "error": str(exc)},
        )
        return BackendUnavailableError(
            message="Image storage is temporarily unavailable",
            details={"backend": self.backend_name, "operation": operation},
        )


def _etag(head: Mapping[str, Any]) -> str:
    return str(head.get("ETag", "")).strip('"')
