import os

import pytest
from botocore.exceptions import ClientError

from portfolio.core.config import PortfolioSettings
from portfolio.core.infrastructure.adapters.s3_adapter import S3Adapter
from portfolio.core.infrastructure.connection import ConnectionState

BUCKET = os.getenv("PHOTO_S3_BUCKET_NAME")


class TestS3Adapter:
    def test_init_missing_bucket(self) -> None:
        settings = PortfolioSettings.from_env({"STORAGE_VARIANT": "memory"})

        with pytest.raises(RuntimeError):
            S3Adapter(settings)

    def test_client_is_not_created_until_used(self) -> None:
        adapter = S3Adapter()

        assert adapter.connection.state is ConnectionState.UNINITIALIZED

    def test_put_and_get_object(self, s3_bucket) -> None:
        adapter = S3Adapter()

        adapter.put_object(
            key="photos/a.jpg",
            body=b"image-bytes",
            content_type="image/jpeg",
            metadata={"photo-id": "a"},
        )

        stored = s3_bucket.get_object(Bucket=BUCKET, Key="photos/a.jpg")
        assert stored["Body"].read() == b"image-bytes"
        assert adapter.get_object(key="photos/a.jpg")["ContentType"] == "image/jpeg"
        assert adapter.head_object(key="photos/a.jpg")["Metadata"] == {"photo-id": "a"}
        assert adapter.connection.state is ConnectionState.READY

    def test_get_object_missing_key_raises_client_error(self, s3_bucket) -> None:
        adapter = S3Adapter()

        with pytest.raises(ClientError) as exc:
            adapter.get_object(key="photos/missing.jpg")

        assert exc.value.response["Error"]["Code"] == "NoSuchKey"

    def test_delete_object(self, s3_bucket, s3_put_object) -> None:
        adapter = S3Adapter()
        s3_put_object("photos/doomed.jpg", b"data")

        adapter.delete_object(key="photos/doomed.jpg")

        with pytest.raises(ClientError):
            s3_bucket.head_object(Bucket=BUCKET, Key="photos/doomed.jpg")

    def test_iter_objects_follows_pages(self, s3_bucket, s3_put_object, monkeypatch) -> None:
        adapter = S3Adapter()
        for index in range(5):
            s3_put_object(f"photos/{index}.jpg", b"data")
        s3_put_object("elsewhere/x.jpg", b"data")

        client = adapter.connection.client()
        paginator = client.get_paginator("list_objects_v2")
        original = paginator.paginate
        monkeypatch.setattr(
            paginator,
            "paginate",
            lambda **kwargs: original(**kwargs, PaginationConfig={"PageSize": 2}),
        )
        monkeypatch.setattr(client, "get_paginator", lambda name: paginator)

        keys = [item["Key"] for item in adapter.iter_objects(prefix="photos/")]

        assert keys == [f"photos/{index}.jpg" for index in range(5)]

    def test_put_object_bubbles_client_error(self, monkeypatch, s3_bucket) -> None:
        adapter = S3Adapter()

        def raise_error(**_):
            raise ClientError({"Error": {"Code": "InternalError"}}, "PutObject")

        monkeypatch.setattr(adapter.connection.client(), "put_object", raise_error)

        with pytest.raises(ClientError):
            adapter.put_object(
                key="photos/x.jpg",
                body=b"data",
                content_type="image/jpeg",
                metadata={},
            )
