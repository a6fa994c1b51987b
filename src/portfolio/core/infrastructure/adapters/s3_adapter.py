"""Thin adapter for interacting with Amazon S3."""

from collections.abc import Iterator, Mapping
from typing import Any, Protocol

import boto3
from botocore.config import Config

from portfolio.core.config import PortfolioSettings
from portfolio.core.infrastructure.connection import BackendConnection
from portfolio.core.utils.constants import DEFAULT_BACKEND_MAX_ATTEMPTS


class _Boto3S3Client(Protocol):
    """Internal typing for boto3 S3 client (AWS-facing only)."""

    def put_object(self, **kwargs: Any) -> Any: ...

    def get_object(self, *, Bucket: str, Key: str) -> Mapping[str, Any]: ...

    def head_object(self, *, Bucket: str, Key: str) -> Mapping[str, Any]: ...

    def delete_object(self, *, Bucket: str, Key: str) -> Any: ...

    def get_paginator(self, operation_name: str) -> Any: ...

    def head_bucket(self, *, Bucket: str) -> Any: ...


class S3AdapterProtocol(Protocol):
    """Minimal S3 adapter protocol (object-store-facing)."""

    bucket: str
    region: str
    connection: BackendConnection[Any]

    def put_object(
        self,
        *,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Mapping[str, str],
    ) -> None: ...

    def get_object(self, *, key: str) -> Mapping[str, Any]: ...

    def head_object(self, *, key: str) -> Mapping[str, Any]: ...

    def delete_object(self, *, key: str) -> None: ...

    def iter_objects(self, *, prefix: str) -> Iterator[Mapping[str, Any]]: ...


class S3Adapter:
    """Low-level S3 operations (mechanical, no error handling).

    This adapter:
    - Wraps boto3 S3 client behind a BackendConnection
    - Applies per-call connect/read timeouts
    - Does NOT handle errors (lets them bubble up)
    - The object store implementation catches and translates errors
    """

    def __init__(self, settings: PortfolioSettings | None = None) -> None:
        """Prepare a lazily created S3 client from configuration."""
        settings = settings or PortfolioSettings.from_env()
        if not settings.s3_bucket_name:
            raise RuntimeError("S3 bucket name is not configured")

        self.bucket = settings.s3_bucket_name
        self.region = settings.aws_region
        self._endpoint_url = settings.aws_endpoint_url
        self._config = Config(
            connect_timeout=settings.backend_timeout_seconds,
            read_timeout=settings.backend_timeout_seconds,
            retries={"max_attempts": DEFAULT_BACKEND_MAX_ATTEMPTS, "mode": "standard"},
        )
        self.connection: BackendConnection[_Boto3S3Client] = BackendConnection(
            "s3",
            self._create_client,
            probe=lambda client: client.head_bucket(Bucket=self.bucket),
            retry_after=settings.backend_retry_seconds,
        )

    def _create_client(self) -> _Boto3S3Client:
        client: _Boto3S3Client = boto3.client(
            "s3",
            endpoint_url=self._endpoint_url,
            region_name=self.region,
            config=self._config,
        )
        return client

    def put_object(
        self,
        *,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Mapping[str, str],
    ) -> None:
        """Store object in S3.
        Raises boto3 exceptions - caught by the object store.
        """
        self.connection.client().put_object(
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            Metadata=dict(metadata),
        )

    def get_object(self, *, key: str) -> Mapping[str, Any]:
        """Fetch object from S3.
        Raises boto3 exceptions - caught by the object store.
        """
        return self.connection.client().get_object(Bucket=self.bucket, Key=key)

    def head_object(self, *, key: str) -> Mapping[str, Any]:
        """Fetch object headers and user metadata.
        Raises boto3 exceptions - caught by the object store.
        """
        return self.connection.client().head_object(Bucket=self.bucket, Key=key)

    def delete_object(self, *, key: str) -> None:
        """Delete object from S3.
        Raises boto3 exceptions - caught by the object store.
        """
        self.connection.client().delete_object(Bucket=self.bucket, Key=key)

    def iter_objects(self, *, prefix: str) -> Iterator[Mapping[str, Any]]:
        """Yield every `Contents` entry under prefix across all pages."""
        paginator = self.connection.client().get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            yield from page.get("Contents", [])
