"""Thin adapter for interacting with Redis."""

from typing import Any, Protocol

import redis

from portfolio.core.config import PortfolioSettings
from portfolio.core.infrastructure.connection import BackendConnection


class RedisClient(Protocol):
    """Subset of redis.Redis used by the key-value store."""

    def get(self, name: str) -> Any: ...
    def set(self, name: str, value: str) -> Any: ...
    def delete(self, *names: str) -> int: ...
    def scan_iter(self, match: str | None = None, count: int | None = None) -> Any: ...
    def ping(self) -> Any: ...


class RedisAdapterProtocol(Protocol):
    connection: BackendConnection[Any]

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def delete(self, key: str) -> int: ...
    def scan_keys(self, prefix: str) -> list[str]: ...


class RedisAdapter:
    """Low-level Redis operations (mechanical, no error handling).

    This adapter:
    - Wraps a redis-py client behind a BackendConnection
    - Applies socket connect/read timeouts
    - Does NOT handle errors (lets them bubble up)
    """

    def __init__(self, settings: PortfolioSettings | None = None) -> None:
        """Prepare a lazily created Redis client from configuration."""
        settings = settings or PortfolioSettings.from_env()
        if not settings.redis_url:
            raise RuntimeError("Redis URL is not configured")

        self._url = settings.redis_url
        self._timeout = settings.backend_timeout_seconds
        self.connection: BackendConnection[RedisClient] = BackendConnection(
            "redis",
            self._create_client,
            probe=lambda client: client.ping(),
            retry_after=settings.backend_retry_seconds,
        )

    def _create_client(self) -> RedisClient:
        client: RedisClient = redis.Redis.from_url(
            self._url,
            decode_responses=True,
            socket_timeout=self._timeout,
            socket_connect_timeout=self._timeout,
        )
        return client

    def get(self, key: str) -> str | None:
        value = self.connection.client().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        self.connection.client().set(key, value)

    def delete(self, key: str) -> int:
        return int(self.connection.client().delete(key))

    def scan_keys(self, prefix: str) -> list[str]:
        pattern = f"{_escape_glob(prefix)}*"
        return [str(key) for key in self.connection.client().scan_iter(match=pattern, count=500)]


def _escape_glob(text: str) -> str:
    """Escape Redis glob metacharacters in a literal prefix."""
    return "".join(f"\\{ch}" if ch in "*?[]\\" else ch for ch in text)
