"""Redis-backed implementation of KeyValueStore."""

from aws_lambda_powertools import Logger
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from portfolio.core.infrastructure.adapters.redis_adapter import RedisAdapter, RedisAdapterProtocol
from portfolio.core.models.errors import BackendUnavailableError, PortfolioError, StorageError
from portfolio.core.repositories.key_value_store import KeyValueStore
from portfolio.core.utils.constants import (
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_READ_FAILED,
    ERROR_CODE_METADATA_WRITE_FAILED,
)

logger = Logger(UTC=True)

TRANSPORT_ERRORS: tuple[type[Exception], ...] = (RedisConnectionError, RedisTimeoutError)


class RedisKeyValueStore(KeyValueStore):
    """String documents stored as plain Redis keys.

    This is the store behind the legacy bulk `photos` key.
    """

    backend_name = "redis"

    def __init__(self, adapter: RedisAdapterProtocol | None = None) -> None:
        self._redis: RedisAdapterProtocol = adapter or RedisAdapter()

    def get(self, key: str) -> str | None:
        try:
            return self._redis.get(key)
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="get", key=key) from exc
        except RedisError as exc:
            logger.error("Redis GET failed", extra={"key": key, "error": str(exc)})
            raise StorageError(
                message="Unable to retrieve photo metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"key": key},
            ) from exc

    def set(self, key: str, value: str) -> None:
        try:
            self._redis.set(key, value)
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="set", key=key) from exc
        except RedisError as exc:
            logger.error("Redis SET failed", extra={"key": key, "error": str(exc)})
            raise StorageError(
                message="Unable to save photo metadata at this time",
                error_code=ERROR_CODE_METADATA_WRITE_FAILED,
                details={"key": key},
            ) from exc

        logger.debug("Document written", extra={"key": key, "size": len(value)})

    def delete(self, key: str) -> bool:
        try:
            return self._redis.delete(key) > 0
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="delete", key=key) from exc
        except RedisError as exc:
            logger.error("Redis DEL failed", extra={"key": key, "error": str(exc)})
            raise StorageError(
                message="Unable to delete photo metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"key": key},
            ) from exc

    def scan_keys(self, prefix: str) -> list[str]:
        try:
            return sorted(self._redis.scan_keys(prefix))
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="scan_keys", key=prefix) from exc
        except RedisError as exc:
            logger.error("Redis SCAN failed", extra={"prefix": prefix, "error": str(exc)})
            raise StorageError(
                message="Unable to retrieve photo metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"prefix": prefix},
            ) from exc

    def connection_states(self) -> dict[str, str]:
        return {self._redis.connection.name: self._redis.connection.state.value}

    def reconnect(self) -> None:
        self._redis.connection.reconnect()

    def _unavailable(self, exc: Exception, *, operation: str, key: str) -> BackendUnavailableError:
        self._redis.connection.mark_degraded(exc)
        logger.warning(
            "Redis unreachable",
            extra={"operation": operation, "key": key, "error": str(exc)},
        )
        return BackendUnavailableError(
            message="Photo metadata is temporarily unavailable",
            details={"backend": self.backend_name, "operation": operation},
        )
