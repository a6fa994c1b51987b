"""Construction of the process-wide PhotoRepository from settings."""

from functools import lru_cache

from aws_lambda_powertools import Logger

from portfolio.core.config import KeyValueBackend, ObjectBackend, PortfolioSettings
from portfolio.core.infrastructure.adapters.dynamodb_adapter import DynamoDBAdapter
from portfolio.core.infrastructure.adapters.redis_adapter import RedisAdapter
from portfolio.core.infrastructure.adapters.s3_adapter import S3Adapter
from portfolio.core.infrastructure.aws.dynamodb_key_value_store import DynamoDBKeyValueStore
from portfolio.core.infrastructure.aws.s3_object_store import S3ObjectStore
from portfolio.core.infrastructure.local.file_key_value_store import FileKeyValueStore
from portfolio.core.infrastructure.local.local_object_store import LocalObjectStore
from portfolio.core.infrastructure.memory.in_memory_key_value_store import InMemoryKeyValueStore
from portfolio.core.infrastructure.memory.in_memory_object_store import InMemoryObjectStore
from portfolio.core.infrastructure.metadata_stores import (
    BulkMetadataStore,
    FilenameMetadataStore,
    MetadataStore,
    NativeMetadataStore,
    SidecarMetadataStore,
)
from portfolio.core.infrastructure.redis.redis_key_value_store import RedisKeyValueStore
from portfolio.core.models.errors import ConfigurationError
from portfolio.core.models.photo import MetadataVariant
from portfolio.core.repositories.key_value_store import KeyValueStore
from portfolio.core.repositories.object_store import ObjectStore
from portfolio.core.repositories.photo_repository import PhotoRepository, SortKeyIssuer

logger = Logger(UTC=True)

LOCAL_UPLOADS_DIR = "uploads"
LOCAL_DATA_DIR = "data"


def build_object_store(settings: PortfolioSettings) -> ObjectStore:
    if settings.object_backend is ObjectBackend.S3:
        return S3ObjectStore(
            S3Adapter(settings),
            public_base_url=settings.image_public_base_url,
        )
    if settings.object_backend is ObjectBackend.LOCAL:
        return LocalObjectStore(
            settings.local_storage_dir / LOCAL_UPLOADS_DIR,
            public_prefix=settings.local_public_url_prefix,
        )
    return InMemoryObjectStore()


def build_key_value_store(settings: PortfolioSettings) -> KeyValueStore:
    backend = settings.kv_backend

    if backend is KeyValueBackend.REDIS:
        return RedisKeyValueStore(RedisAdapter(settings))
    if backend is KeyValueBackend.DYNAMODB:
        return DynamoDBKeyValueStore(DynamoDBAdapter(settings))
    if backend is KeyValueBackend.LOCAL:
        return FileKeyValueStore(settings.local_storage_dir / LOCAL_DATA_DIR)
    if backend is KeyValueBackend.MEMORY:
        return InMemoryKeyValueStore()

    raise ConfigurationError(
        message="A key-value backend is required for this metadata variant",
        details={"variant": settings.metadata_variant.value},
    )


def build_metadata_store(settings: PortfolioSettings, object_store: ObjectStore) -> MetadataStore:
    variant = settings.metadata_variant
    prefix = settings.key_prefix

    if variant is MetadataVariant.NATIVE:
        return NativeMetadataStore(object_store, prefix=prefix)
    if variant is MetadataVariant.FILENAME:
        return FilenameMetadataStore(prefix=prefix)
    if variant is MetadataVariant.SIDECAR_JSON:
        return SidecarMetadataStore(build_key_value_store(settings), prefix=prefix)
    return BulkMetadataStore(build_key_value_store(settings), prefix=prefix)


def build_photo_repository(
    settings: PortfolioSettings,
    *,
    sort_keys: SortKeyIssuer | None = None,
) -> PhotoRepository:
    """Wire stores for the configured variant. No backend is contacted here.

    Sort keys are strictly increasing per repository, which is one per
    process when built through `get_photo_repository()`.
    """
    object_store = build_object_store(settings)
    metadata_store = build_metadata_store(settings, object_store)

    logger.info(
        "Photo repository configured",
        extra={
            "storage_variant": settings.storage_variant,
            "object_backend": settings.object_backend.value,
            "metadata_variant": settings.metadata_variant.value,
            "kv_backend": settings.kv_backend.value,
            "key_prefix": settings.key_prefix,
        },
    )
    return PhotoRepository(
        object_store=object_store,
        metadata_store=metadata_store,
        sort_keys=sort_keys or SortKeyIssuer(),
        prefix=settings.key_prefix,
    )


@lru_cache(maxsize=1)
def get_settings() -> PortfolioSettings:
    return PortfolioSettings.from_env()


@lru_cache(maxsize=1)
def get_photo_repository() -> PhotoRepository:
    """Process-wide repository, built on first use."""
    return build_photo_repository(get_settings())


def reset_container() -> None:
    """Forget cached settings and repository (tests and config reloads)."""
    get_photo_repository.cache_clear()
    get_settings.cache_clear()
