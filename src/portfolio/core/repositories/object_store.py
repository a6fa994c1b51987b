"""Abstract contract for image object storage."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import datetime

from pydantic import BaseModel, Field, StrictInt, StrictStr


class StoredObject(BaseModel):
    """One entry of an object listing."""

    key: StrictStr = Field(..., description="Object key")
    locator: StrictStr = Field(..., description="URL or path that resolves to the bytes")
    size: StrictInt = Field(0, ge=0, description="Object size in bytes")
    stored_at: datetime | None = Field(None, description="Last-modified time (UTC)")


class ObjectStore(ABC):
    """Contract for storing and retrieving image payloads.

    Implementations could be S3, local disk, memory, etc.
    The photo repository depends on this interface, not the implementation.
    """

    backend_name: str = "object-store"
    supports_native_metadata: bool = False

    @abstractmethod
    def put_object(
        self,
        *,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        """Store bytes under key and return a durable locator.

        Writing identical content to an existing key is a no-op; different
        content is refused.

        Raises:
            ObjectConflictError: If the key holds different content
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the store rejects the write
        """

    @abstractmethod
    def get_object(self, *, key: str) -> tuple[bytes, str]:
        """Return (content, content_type).

        Raises:
            NotFoundError: If the key does not exist
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the read fails
        """

    @abstractmethod
    def delete_object(self, *, key: str) -> bool:
        """Delete key. Returns False when it was already absent.

        Raises:
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the deletion fails
        """

    @abstractmethod
    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        """Enumerate every object under prefix.

        Raises:
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the listing fails
        """

    def read_metadata(self, *, key: str) -> dict[str, str]:
        """Return native metadata attached to key (empty when unsupported).

        Raises:
            NotFoundError: If the key does not exist
            BackendUnavailableError: If the store cannot be reached
        """
        return {}

    def connection_states(self) -> dict[str, str]:
        """Connection state per backend client, for health reporting."""
        return {}

    def reconnect(self) -> None:
        """Re-establish degraded client connections. No-op by default."""
