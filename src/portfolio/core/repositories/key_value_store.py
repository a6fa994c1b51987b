"""Abstract contract for key-value metadata persistence."""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Contract for storing string documents by key.

    Implementations could be DynamoDB, Redis, local files, memory, etc.
    Sidecar and bulk metadata stores depend on this interface.
    """

    backend_name: str = "key-value"

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the document stored under key, or None.

        Raises:
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the read fails
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value.

        Raises:
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the write fails
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns False when it was already absent.

        Raises:
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the deletion fails
        """

    @abstractmethod
    def scan_keys(self, prefix: str) -> list[str]:
        """Return every stored key starting with prefix, sorted.

        Raises:
            BackendUnavailableError: If the store cannot be reached
            StorageError: If the scan fails
        """

    def connection_states(self) -> dict[str, str]:
        return {}

    def reconnect(self) -> None:
        """Re-establish degraded client connections. No-op by default."""
