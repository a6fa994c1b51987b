"""
Pytest configuration and fixtures for portfolio tests.
Provides AWS mocking, DynamoDB and S3 fixtures, sample images,
multipart request events and in-memory repositories.
"""

import base64
import io
import os
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws
from PIL import Image

os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("PHOTO_S3_BUCKET_NAME", "test-portfolio-photos")
os.environ.setdefault("PHOTO_METADATA_TABLE_NAME", "test-portfolio-metadata")
os.environ.setdefault("STORAGE_VARIANT", "memory")
os.environ.setdefault("ADMIN_PASSWORD", "correct-horse")
os.environ.setdefault("POWERTOOLS_SERVICE_NAME", "portfolio")
os.environ.setdefault("POWERTOOLS_METRICS_NAMESPACE", "Portfolio")
os.environ.setdefault("POWERTOOLS_TRACE_DISABLED", "true")

from portfolio.core.container import reset_container  # noqa: E402
from portfolio.core.infrastructure.memory.in_memory_key_value_store import (  # noqa: E402
    InMemoryKeyValueStore,
)
from portfolio.core.infrastructure.memory.in_memory_object_store import (  # noqa: E402
    InMemoryObjectStore,
)
from portfolio.core.infrastructure.metadata_stores import (  # noqa: E402
    BulkMetadataStore,
    FilenameMetadataStore,
    MetadataStore,
    NativeMetadataStore,
    SidecarMetadataStore,
)
from portfolio.core.models.photo import MetadataVariant  # noqa: E402
from portfolio.core.repositories.photo_repository import (  # noqa: E402
    PhotoRepository,
    SortKeyIssuer,
)

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_container() -> Iterator[None]:
    """Every test builds its own settings and repository."""
    reset_container()
    yield
    reset_container()


@pytest.fixture(scope="function")
def aws_mock():
    with mock_aws():
        yield


@pytest.fixture(scope="function")
def s3_client(aws_mock):
    return boto3.client("s3", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def s3_bucket(s3_client):
    """Create the photo bucket inside the moto context."""
    bucket_name = os.getenv("PHOTO_S3_BUCKET_NAME")

    try:
        s3_client.head_bucket(Bucket=bucket_name)
    except ClientError:
        s3_client.create_bucket(Bucket=bucket_name)

    return s3_client


@pytest.fixture
def s3_put_object(s3_bucket) -> Callable[..., dict[str, Any]]:
    """
    Helper to upload an object to S3 directly.

    Usage:
        s3_put_object("photos/abc.jpg", image_bytes, metadata={"photo-id": "abc"})
    """

    def _put(
        key: str,
        body: bytes,
        content_type: str = "image/jpeg",
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return s3_bucket.put_object(
            Bucket=os.getenv("PHOTO_S3_BUCKET_NAME"),
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata or {},
        )

    return _put


@pytest.fixture(scope="function")
def dynamodb_resource(aws_mock):
    return boto3.resource("dynamodb", region_name=os.getenv("AWS_REGION"))


@pytest.fixture(scope="function")
def dynamodb_table(dynamodb_resource):
    """Metadata table keyed by `pk`, as used by the sidecar variant."""
    table = dynamodb_resource.create_table(
        TableName=os.getenv("PHOTO_METADATA_TABLE_NAME"),
        BillingMode="PAY_PER_REQUEST",
        KeySchema=[{"AttributeName": "pk", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "pk", "AttributeType": "S"}],
    )
    table.wait_until_exists()
    return table


def make_image_bytes(
    *,
    size: tuple[int, int] = (64, 48),
    color: tuple[int, ...] = (200, 120, 40),
    mode: str = "RGB",
    image_format: str = "JPEG",
) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    """Builds image bytes of any size, mode and format."""
    return make_image_bytes


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Small valid JPEG."""
    return make_image_bytes()


@pytest.fixture
def png_rgba_bytes() -> bytes:
    """Small PNG with an alpha channel."""
    return make_image_bytes(mode="RGBA", color=(10, 20, 30, 0), image_format="PNG")


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self._next = start

    def __call__(self) -> datetime:
        current = self._next
        self._next = current + timedelta(seconds=1)
        return current


def build_metadata_store(
    variant: MetadataVariant,
    *,
    objects: InMemoryObjectStore,
    kv: InMemoryKeyValueStore,
) -> MetadataStore:
    if variant is MetadataVariant.SIDECAR_JSON:
        return SidecarMetadataStore(kv)
    if variant is MetadataVariant.NATIVE:
        return NativeMetadataStore(objects)
    if variant is MetadataVariant.FILENAME:
        return FilenameMetadataStore()
    return BulkMetadataStore(kv)


@pytest.fixture
def make_repository() -> Callable[..., PhotoRepository]:
    """
    Factory for a repository over in-memory stores.

    Usage:
        repo = make_repository(MetadataVariant.SIDECAR_JSON)
        repo.put(title="Sunset", ...)
    """

    def _make(
        variant: MetadataVariant = MetadataVariant.BULK,
        *,
        objects: InMemoryObjectStore | None = None,
        kv: InMemoryKeyValueStore | None = None,
        **kwargs: Any,
    ) -> PhotoRepository:
        objects = objects or InMemoryObjectStore()
        kv = kv or InMemoryKeyValueStore()
        kwargs.setdefault("clock", StepClock())
        kwargs.setdefault("sort_keys", SortKeyIssuer())
        return PhotoRepository(
            object_store=objects,
            metadata_store=build_metadata_store(variant, objects=objects, kv=kv),
            **kwargs,
        )

    return _make


MULTIPART_BOUNDARY = "----portfolio-test-boundary"


def build_multipart_body(
    fields: dict[str, str],
    files: dict[str, tuple[str, bytes, str]],
) -> bytes:
    parts: list[bytes] = []

    for name, value in fields.items():
        parts.append(
            f'--{MULTIPART_BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n'.encode()
            + value.encode("utf-8")
            + b"\r\n"
        )

    for name, (file_name, data, content_type) in files.items():
        parts.append(
            (
                f"--{MULTIPART_BOUNDARY}\r\n"
                f'Content-Disposition: form-data; name="{name}"; filename="{file_name}"\r\n'
                f"Content-Type: {content_type}\r\n\r\n"
            ).encode()
            + data
            + b"\r\n"
        )

    return b"".join(parts) + f"--{MULTIPART_BOUNDARY}--\r\n".encode()


@pytest.fixture
def multipart_event() -> Callable[..., dict[str, Any]]:
    """
    Factory for API Gateway events carrying a multipart/form-data body.

    Usage:
        event = multipart_event({"title": "Sunset"}, {"photo": ("a.jpg", data, "image/jpeg")})
    """

    def _build(
        fields: dict[str, str] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
        *,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        body = build_multipart_body(fields or {}, files or {})
        return {
            "httpMethod": "POST",
            "headers": {
                "Content-Type": f"multipart/form-data; boundary={MULTIPART_BOUNDARY}",
                **(headers or {}),
            },
            "body": base64.b64encode(body).decode("ascii"),
            "isBase64Encoded": True,
        }

    return _build
