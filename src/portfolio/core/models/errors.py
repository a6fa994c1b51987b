"""Custom exception classes for the photo portfolio service."""

from typing import Any

from portfolio.core.utils.constants import (
    ERROR_CODE_BACKEND_UNAVAILABLE,
    ERROR_CODE_CONFIGURATION,
    ERROR_CODE_METADATA_DECODE_FAILED,
    ERROR_CODE_OBJECT_CONFLICT,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_STORAGE,
    ERROR_CODE_STORED_NOT_INDEXED,
    ERROR_CODE_UNAUTHORIZED,
    ERROR_CODE_VALIDATION_FAILED,
)


class PortfolioError(Exception):
    """
    Base exception for all portfolio service errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ValidationError(PortfolioError):
    """Raised when input validation fails. Never retried."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class NotFoundError(PortfolioError):
    """Raised when a requested photo or object does not exist."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class UnauthorizedError(PortfolioError):
    """Raised when the admin secret does not match."""

    def __init__(
        self,
        *,
        message: str = "Unauthorized",
        error_code: str = ERROR_CODE_UNAUTHORIZED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class BackendUnavailableError(PortfolioError):
    """Raised when the object store or a metadata backend cannot be reached.

    Also raised for every call made while a backend connection is degraded.
    Callers treat it as "try again later".
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_BACKEND_UNAVAILABLE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class StorageError(PortfolioError):
    """Raised when a backend answered but refused or failed the operation."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_STORAGE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class ObjectConflictError(StorageError):
    """Raised when a put would overwrite an existing key with different content."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_OBJECT_CONFLICT,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class DecodeError(PortfolioError):
    """Raised by codecs when one metadata item cannot be decoded.

    Always caught per item and replaced by a placeholder record.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_METADATA_DECODE_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)


class PartialWriteError(PortfolioError):
    """Raised when one half of a two-step write succeeded and the other failed.

    `record` is the photo the caller tried to create or delete.
    `backend_unavailable` tells whether the failing half could not be
    reached at all, as opposed to failing for another reason.
    """

    def __init__(
        self,
        *,
        message: str,
        record: Any,
        backend_unavailable: bool,
        error_code: str = ERROR_CODE_STORED_NOT_INDEXED,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.record = record
        self.backend_unavailable = backend_unavailable
        super().__init__(message=message, error_code=error_code, details=details)


class ConfigurationError(PortfolioError):
    """Raised when the storage configuration is missing or inconsistent."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_CONFIGURATION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, error_code=error_code, details=details)
