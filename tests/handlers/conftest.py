import json
from collections.abc import Callable
from types import SimpleNamespace
from typing import Any

import pytest

from portfolio.core.container import get_photo_repository
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.repositories.photo_repository import PhotoRepository
from portfolio.core.utils.auth import derive_token


@pytest.fixture
def lambda_context(monkeypatch):
    context = SimpleNamespace(
        aws_request_id="test-request-id",
        function_name="test-function",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:000000000000:function:test",
        log_group_name="/aws/lambda/test-function",
        log_stream_name="2024/01/01/[$LATEST]test",
    )

    monkeypatch.setattr(
        "aws_lambda_powertools.utilities.typing.LambdaContext",
        lambda: context,
        raising=False,
    )

    return context


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization header for the ADMIN_PASSWORD configured in tests/conftest.py."""
    return {"Authorization": f"Bearer {derive_token('correct-horse')}"}


@pytest.fixture
def repository() -> PhotoRepository:
    """The process repository the handlers resolve (in-memory in tests)."""
    return get_photo_repository()


@pytest.fixture
def stored_photo(repository: PhotoRepository, jpeg_bytes: bytes) -> PhotoRecord:
    return repository.put(
        title="Sunset Over Bay",
        description="Evening light",
        image_bytes=jpeg_bytes,
        original_name="sunset.jpg",
    )


@pytest.fixture
def api_event() -> Callable[..., dict[str, Any]]:
    """
    Factory for API Gateway proxy events.

    Usage:
        event = api_event("GET", path_params={"photo_id": "abc"})
    """

    def _build(
        method: str = "GET",
        *,
        path_params: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> dict[str, Any]:
        return {
            "httpMethod": method,
            "pathParameters": path_params,
            "queryStringParameters": query,
            "headers": headers or {},
            "body": None if json_body is None else json.dumps(json_body),
            "isBase64Encoded": False,
        }

    return _build


def parse_body(response: dict[str, Any]) -> dict[str, Any]:
    return json.loads(response["body"]) if response.get("body") else {}


@pytest.fixture
def body_of() -> Callable[[dict[str, Any]], dict[str, Any]]:
    return parse_body
