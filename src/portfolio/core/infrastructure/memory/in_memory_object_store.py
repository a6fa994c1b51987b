"""Process-local implementation of ObjectStore."""

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from portfolio.core.models.errors import NotFoundError, ObjectConflictError
from portfolio.core.repositories.object_store import ObjectStore, StoredObject
from portfolio.core.utils.time import utc_now


@dataclass
class _Entry:
    data: bytes
    content_type: str
    metadata: dict[str, str] = field(default_factory=dict)
    stored_at: datetime = field(default_factory=utc_now)


class InMemoryObjectStore(ObjectStore):
    """Objects held in a dict. Used for the `memory` variant and in tests.

    Supports native metadata so every metadata variant can run without
    remote services.
    """

    backend_name = "memory"
    supports_native_metadata = True

    def __init__(self) -> None:
        self._objects: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def locator_for(key: str) -> str:
        return f"memory://{key}"

    def put_object(
        self,
        *,
        key: str,
        data: bytes,
        content_type: str,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        with self._lock:
            existing = self._objects.get(key)
            if existing is not None and existing.data != data:
                raise ObjectConflictError(
                    message="A different image is already stored under this key",
                    details={"key": key},
                )
            if existing is None:
                self._objects[key] = _Entry(
                    data=bytes(data),
                    content_type=content_type,
                    metadata={k.lower(): v for k, v in (metadata or {}).items()},
                )
        return self.locator_for(key)

    def get_object(self, *, key: str) -> tuple[bytes, str]:
        with self._lock:
            entry = self._objects.get(key)
        if entry is None:
            raise NotFoundError(message="Image not found", details={"key": key})
        return entry.data, entry.content_type

    def delete_object(self, *, key: str) -> bool:
        with self._lock:
            return self._objects.pop(key, None) is not None

    def list_objects(self, *, prefix: str) -> list[StoredObject]:
        with self._lock:
            items = sorted(self._objects.items())
        return [
            StoredObject(
                key=key,
                locator=self.locator_for(key),
                size=len(entry.data),
                stored_at=entry.stored_at,
            )
            for key, entry in items
            if key.startswith(prefix)
        ]

    def read_metadata(self, *, key: str) -> dict[str, str]:
        with self._lock:
            entry = self._objects.get(key)
        if entry is None:
            raise NotFoundError(message="Image not found", details={"key": key})
        return dict(entry.metadata)
