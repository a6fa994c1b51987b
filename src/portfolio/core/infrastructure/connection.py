"""
Backend client lifecycle.

Every remote backend (S3, DynamoDB, Redis) owns one `BackendConnection`.
The client is created lazily on first use. A transport failure moves the
connection to DEGRADED. While degraded, calls fail fast with
`BackendUnavailableError` until `retry_after` seconds have passed; the next
call then rebuilds and probes the client itself, so a warm process heals
without outside help. `reconnect()` forces that attempt immediately.

    UNINITIALIZED --first use--> READY --transport failure--> DEGRADED
    DEGRADED --reconnect() or first call after retry_after--> READY
"""

import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Generic, TypeVar

from aws_lambda_powertools import Logger

from portfolio.core.models.errors import BackendUnavailableError
from portfolio.core.utils.constants import DEFAULT_BACKEND_RETRY_SECONDS

logger = Logger(UTC=True)

ClientT = TypeVar("ClientT")


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DEGRADED = "degraded"


class BackendConnection(Generic[ClientT]):
    """Lazily created backend client with an explicit health state."""

    def __init__(
        self,
        name: str,
        factory: Callable[[], ClientT],
        probe: Callable[[ClientT], object] | None = None,
        *,
        retry_after: float = DEFAULT_BACKEND_RETRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._factory = factory
        self._probe = probe
        self._retry_after = retry_after
        self._clock = clock
        self._client: ClientT | None = None
        self._state = ConnectionState.UNINITIALIZED
        self._last_error: str | None = None
        self._degraded_at: float | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def client(self) -> ClientT:
        """Return the client, creating it on first use.

        A degraded connection is retried once its cooldown has elapsed.

        Raises:
            BackendUnavailableError: If the connection is degraded or the
                client cannot be created.
        """
        with self._lock:
            if self._state is ConnectionState.UNINITIALIZED:
                self._connect()
            elif self._state is ConnectionState.DEGRADED and self._retry_due():
                logger.info("Retrying degraded backend", extra={"backend": self.name})
                self._connect(probe=True)

            if self._state is ConnectionState.DEGRADED or self._client is None:
                raise BackendUnavailableError(
                    message=f"{self.name} is unavailable",
                    details={"backend": self.name, "last_error": self._last_error},
                )

            return self._client

    def mark_degraded(self, exc: BaseException) -> None:
        """Record a transport failure observed while using the client."""
        with self._lock:
            if self._state is not ConnectionState.DEGRADED:
                logger.warning(
                    "Backend connection degraded",
                    extra={
                        "backend": self.name,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
            self._degrade(exc)

    def reconnect(self) -> None:
        """Move a degraded connection back to READY by rebuilding the client.

        No-op unless the connection is degraded.

        Raises:
            BackendUnavailableError: If the client still cannot be created.
        """
        with self._lock:
            if self._state is not ConnectionState.DEGRADED:
                return

            logger.info("Reconnecting backend", extra={"backend": self.name})
            self._connect(probe=True)

            if self._state is ConnectionState.DEGRADED:
                raise BackendUnavailableError(
                    message=f"{self.name} is still unavailable",
                    details={"backend": self.name, "last_error": self._last_error},
                )

    def _retry_due(self) -> bool:
        if self._degraded_at is None:
            return True
        return self._clock() - self._degraded_at >= self._retry_after

    def _degrade(self, exc: BaseException) -> None:
        self._state = ConnectionState.DEGRADED
        self._last_error = f"{type(exc).__name__}: {exc}"
        self._degraded_at = self._clock()

    def _connect(self, *, probe: bool = False) -> None:
        try:
            client = self._factory()
            if probe and self._probe is not None:
                self._probe(client)
            self._client = client
        except Exception as exc:
            logger.exception(
                "Failed to create backend client",
                extra={"backend": self.name},
            )
            self._client = None
            self._degrade(exc)
            return

        self._state = ConnectionState.READY
        self._last_error = None
        self._degraded_at = None
