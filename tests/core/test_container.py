import json
from datetime import datetime, timezone

import pytest

from portfolio.core.config import PortfolioSettings
from portfolio.core.container import (
    build_key_value_store,
    build_metadata_store,
    build_object_store,
    build_photo_repository,
    get_photo_repository,
    get_settings,
    reset_container,
)
from portfolio.core.infrastructure.aws.dynamodb_key_value_store import DynamoDBKeyValueStore
from portfolio.core.infrastructure.aws.s3_object_store import S3ObjectStore
from portfolio.core.infrastructure.local.file_key_value_store import FileKeyValueStore
from portfolio.core.infrastructure.local.local_object_store import LocalObjectStore
from portfolio.core.infrastructure.memory.in_memory_key_value_store import InMemoryKeyValueStore
from portfolio.core.infrastructure.memory.in_memory_object_store import InMemoryObjectStore
from portfolio.core.infrastructure.metadata_stores import (
    BulkMetadataStore,
    FilenameMetadataStore,
    NativeMetadataStore,
    SidecarMetadataStore,
)
from portfolio.core.infrastructure.redis.redis_key_value_store import RedisKeyValueStore
from portfolio.core.models.errors import ConfigurationError
from portfolio.core.models.photo import MetadataVariant
from portfolio.core.repositories.photo_repository import SortKeyIssuer

AWS_ENV = {
    "PHOTO_S3_BUCKET_NAME": "bucket",
    "PHOTO_METADATA_TABLE_NAME": "table",
    "REDIS_URL": "redis://localhost:6379/0",
}


def settings_for(preset: str, **extra: str) -> PortfolioSettings:
    return PortfolioSettings.from_env({"STORAGE_VARIANT": preset, **AWS_ENV, **extra})


class TestBuilders:
    def test_memory_preset(self) -> None:
        settings = settings_for("memory")

        assert isinstance(build_object_store(settings), InMemoryObjectStore)
        assert isinstance(build_key_value_store(settings), InMemoryKeyValueStore)

    def test_local_preset_uses_storage_dir(self, tmp_path) -> None:
        settings = settings_for("local", LOCAL_STORAGE_DIR=str(tmp_path))

        object_store = build_object_store(settings)
        kv = build_key_value_store(settings)

        assert isinstance(object_store, LocalObjectStore)
        assert isinstance(kv, FileKeyValueStore)
        assert kv.path_for("photos") == tmp_path / "data" / "photos.json"

    @pytest.mark.parametrize(
        "preset, metadata_type",
        [
            ("blob-redis", BulkMetadataStore),
            ("s3-sidecar", SidecarMetadataStore),
            ("s3-native", NativeMetadataStore),
            ("s3-filename", FilenameMetadataStore),
        ],
    )
    def test_remote_presets(self, preset: str, metadata_type: type) -> None:
        settings = settings_for(preset)
        object_store = build_object_store(settings)

        assert isinstance(object_store, S3ObjectStore)
        assert isinstance(build_metadata_store(settings, object_store), metadata_type)

    def test_remote_key_value_backends(self) -> None:
        assert isinstance(build_key_value_store(settings_for("blob-redis")), RedisKeyValueStore)
        assert isinstance(build_key_value_store(settings_for("s3-sidecar")), DynamoDBKeyValueStore)

    def test_key_value_store_required(self) -> None:
        with pytest.raises(ConfigurationError):
            build_key_value_store(settings_for("s3-filename"))

    def test_building_contacts_no_backend(self) -> None:
        repository = build_photo_repository(settings_for("s3-sidecar"))

        assert repository.variant is MetadataVariant.SIDECAR_JSON
        assert set(repository.connection_states().values()) == {"uninitialized"}


class TestProcessContainer:
    def test_repository_is_cached(self) -> None:
        assert get_photo_repository() is get_photo_repository()
        assert get_settings().storage_variant == "memory"

    def test_reset_rebuilds(self, monkeypatch) -> None:
        first = get_photo_repository()

        monkeypatch.setenv("STORAGE_METADATA_VARIANT", "sidecar_json")
        reset_container()

        second = get_photo_repository()
        assert second is not first
        assert second.variant is MetadataVariant.SIDECAR_JSON


LEGACY_ID = "6f1d2c3b-4a5e-4f60-9b7a-8c9d0e1f2a3b"


class TestLocalLayout:
    def test_reads_existing_uploads_and_photos_json(self, tmp_path) -> None:
        (tmp_path / "uploads").mkdir()
        (tmp_path / "uploads" / f"{LEGACY_ID}.png").write_bytes(b"legacy-image")
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "photos.json").write_text(
            json.dumps(
                [
                    {
                        "id": LEGACY_ID,
                        "title": "Old Harbour",
                        "description": "From the first gallery",
                        "url": f"/uploads/{LEGACY_ID}.png",
                        "uploadDate": "2023-05-01T08:30:00.000Z",
                        "originalName": "harbour.png",
                        "size": 12,
                    }
                ]
            )
        )
        repository = build_photo_repository(settings_for("local", LOCAL_STORAGE_DIR=str(tmp_path)))

        records = repository.list()

        assert [record.id for record in records] == [LEGACY_ID]
        record = records[0]
        assert record.title == "Old Harbour"
        assert record.description == "From the first gallery"
        assert record.url == f"/uploads/{LEGACY_ID}.png"
        assert record.key == f"{LEGACY_ID}.png"
        assert not record.placeholder
        assert repository.read_image(LEGACY_ID)[0] == b"legacy-image"

    def test_new_uploads_use_flat_layout(self, tmp_path, jpeg_bytes) -> None:
        repository = build_photo_repository(settings_for("local", LOCAL_STORAGE_DIR=str(tmp_path)))

        record = repository.put(
            title="Pier", description="", image_bytes=jpeg_bytes, original_name="pier.jpg"
        )

        assert record.key == f"{record.id}.jpg"
        assert record.url == f"/uploads/{record.id}.jpg"
        assert (tmp_path / "uploads" / f"{record.id}.jpg").is_file()
        collection = json.loads((tmp_path / "data" / "photos.json").read_text())
        assert [item["id"] for item in collection] == [record.id]

    def test_explicit_prefix_overrides_backend_default(self, tmp_path, jpeg_bytes) -> None:
        settings = settings_for(
            "local", LOCAL_STORAGE_DIR=str(tmp_path), STORAGE_KEY_PREFIX="photos/"
        )

        record = build_photo_repository(settings).put(
            title="Pier", description="", image_bytes=jpeg_bytes, original_name=""
        )

        assert record.key == f"photos/{record.id}.jpg"


class TestSortKeys:
    def test_injected_issuer_is_used(self, jpeg_bytes) -> None:
        issuer = SortKeyIssuer()
        future = issuer.issue(datetime(2100, 1, 1, tzinfo=timezone.utc))
        repository = build_photo_repository(settings_for("memory"), sort_keys=issuer)

        record = repository.put(title="Late", description="", image_bytes=jpeg_bytes, original_name="")

        assert record.sort_key == future + 1

    def test_repositories_do_not_share_sort_keys(self, jpeg_bytes) -> None:
        issuer = SortKeyIssuer()
        future = issuer.issue(datetime(2100, 1, 1, tzinfo=timezone.utc))
        build_photo_repository(settings_for("memory"), sort_keys=issuer)

        record = build_photo_repository(settings_for("memory")).put(
            title="Now", description="", image_bytes=jpeg_bytes, original_name=""
        )

        assert record.sort_key < future
