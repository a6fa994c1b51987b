"""DynamoDB-backed implementation of KeyValueStore."""

from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from portfolio.core.infrastructure.adapters.dynamodb_adapter import (
    DynamoDBAdapter,
    DynamoDBAdapterProtocol,
)
from portfolio.core.infrastructure.aws.errors import TRANSPORT_ERRORS, client_error_code
from portfolio.core.models.errors import BackendUnavailableError, PortfolioError, StorageError
from portfolio.core.repositories.key_value_store import KeyValueStore
from portfolio.core.utils.constants import (
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_READ_FAILED,
    ERROR_CODE_METADATA_WRITE_FAILED,
)

logger = Logger(UTC=True)

PARTITION_KEY = "pk"
DOCUMENT_ATTRIBUTE = "document"


class DynamoDBKeyValueStore(KeyValueStore):
    """Documents stored as `{pk, document}` items of one DynamoDB table.

    All boto3 errors are caught and translated into
    domain-specific errors with stable semantics.
    """

    backend_name = "dynamodb"

    def __init__(self, adapter: DynamoDBAdapterProtocol | None = None) -> None:
        self._db: DynamoDBAdapterProtocol = adapter or DynamoDBAdapter()

    def get(self, key: str) -> str | None:
        logger.debug("Fetching document", extra={"key": key})

        try:
            item = self._db.get_item(key={PARTITION_KEY: key}).get("Item")
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="get", key=key) from exc
        except ClientError as exc:
            logger.error(
                "DynamoDB get_item failed",
                extra={"key": key, "error_code": client_error_code(exc)},
            )
            raise StorageError(
                message="Unable to retrieve photo metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"key": key},
            ) from exc

        if item is None:
            return None

        document = item.get(DOCUMENT_ATTRIBUTE)
        if not isinstance(document, str):
            raise StorageError(
                message="Invalid photo metadata format",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"key": key},
            )
        return document

    def set(self, key: str, value: str) -> None:
        logger.debug("Writing document", extra={"key": key})

        try:
            self._db.put_item(item={PARTITION_KEY: key, DOCUMENT_ATTRIBUTE: value})
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="set", key=key) from exc
        except ClientError as exc:
            logger.error(
                "DynamoDB put_item failed",
                extra={"key": key, "error_code": client_error_code(exc)},
            )
            raise StorageError(
                message="Unable to save photo metadata at this time",
                error_code=ERROR_CODE_METADATA_WRITE_FAILED,
                details={"key": key},
            ) from exc

        logger.info("Document written", extra={"key": key})

    def delete(self, key: str) -> bool:
        logger.debug("Removing document", extra={"key": key})

        try:
            response = self._db.delete_item(key={PARTITION_KEY: key})
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="delete", key=key) from exc
        except ClientError as exc:
            logger.error(
                "DynamoDB delete_item failed",
                extra={"key": key, "error_code": client_error_code(exc)},
            )
            raise StorageError(
                message="Unable to delete photo metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"key": key},
            ) from exc

        existed = bool(response.get("Attributes"))
        logger.info("Document removed", extra={"key": key, "existed": existed})
        return existed

    def scan_keys(self, prefix: str) -> list[str]:
        logger.debug("Scanning documents", extra={"prefix": prefix})

        try:
            keys = self._db.scan_attribute(attribute=PARTITION_KEY)
        except PortfolioError:
            raise
        except TRANSPORT_ERRORS as exc:
            raise self._unavailable(exc, operation="scan_keys", key=prefix) from exc
        except ClientError as exc:
            logger.error(
                "DynamoDB scan failed",
                extra={"prefix": prefix, "error_code": client_error_code(exc)},
            )
            raise StorageError(
                message="Unable to retrieve photo metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"prefix": prefix},
            ) from exc

        return sorted(str(key) for key in keys if str(key).startswith(prefix))

    def connection_states(self) -> dict[str, str]:
        return {self._db.connection.name: self._db.connection.state.value}

    def reconnect(self) -> None:
        self._db.connection.reconnect()

    def _unavailable(self, exc: Exception, *, operation: str, key: str) -> BackendUnavailableError:
        self._db.connection.mark_degraded(exc)
        logger.warning(
            "DynamoDB unreachable",
            extra={"operation": operation, "key": key, "error": str(exc)},
        )
        return BackendUnavailableError(
            message="Photo metadata is temporarily unavailable",
            details={"backend": self.backend_name, "operation": operation},
        )
