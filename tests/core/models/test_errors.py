"""
Unit tests for portfolio.core.models.errors
"""

import pytest

from portfolio.core.models.errors import (
    BackendUnavailableError,
    ConfigurationError,
    DecodeError,
    NotFoundError,
    ObjectConflictError,
    PartialWriteError,
    PortfolioError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)


class TestPortfolioError:
    def test_base_error(self) -> None:
        err = PortfolioError(
            message="Something went wrong",
            error_code="TEST_ERROR",
            details={"foo": "bar"},
        )

        assert err.message == "Something went wrong"
        assert err.error_code == "TEST_ERROR"
        assert err.details == {"foo": "bar"}
        assert str(err) == "Something went wrong"


@pytest.mark.parametrize(
    "error_type,code",
    [
        (ValidationError, "VALIDATION_FAILED"),
        (NotFoundError, "NOT_FOUND"),
        (BackendUnavailableError, "BACKEND_UNAVAILABLE"),
        (StorageError, "STORAGE_ERROR"),
        (ObjectConflictError, "OBJECT_CONFLICT"),
        (DecodeError, "METADATA_DECODE_FAILED"),
        (ConfigurationError, "CONFIGURATION_ERROR"),
    ],
)
def test_default_codes(error_type, code) -> None:
    err = error_type(message="x")

    assert isinstance(err, PortfolioError)
    assert err.error_code == code
    assert err.details == {}


def test_unauthorized_defaults() -> None:
    err = UnauthorizedError()

    assert err.message == "Unauthorized"
    assert err.error_code == "UNAUTHORIZED"


def test_object_conflict_is_storage_error() -> None:
    assert isinstance(ObjectConflictError(message="x"), StorageError)


def test_partial_write_carries_record() -> None:
    err = PartialWriteError(
        message="Photo stored but not indexed",
        record={"id": "a"},
        backend_unavailable=True,
    )

    assert err.record == {"id": "a"}
    assert err.backend_unavailable is True
    assert err.error_code == "STORED_NOT_INDEXED"
