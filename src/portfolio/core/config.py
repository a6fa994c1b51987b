"""
Runtime configuration.

Settings are read once from environment variables. `STORAGE_VARIANT`
selects a preset pairing of object store, metadata representation and
key-value store; the individual `STORAGE_*` variables override one axis
of the preset.
"""

import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic import ValidationError as PydanticValidationError

from portfolio.core.models.errors import ConfigurationError
from portfolio.core.models.photo import MetadataVariant
from portfolio.core.utils.constants import (
    DEFAULT_AWS_REGION,
    DEFAULT_BACKEND_RETRY_SECONDS,
    DEFAULT_BACKEND_TIMEOUT_SECONDS,
    DEFAULT_LOCAL_PUBLIC_URL_PREFIX,
    DEFAULT_LOCAL_STORAGE_DIR,
    ENV_ADMIN_PASSWORD,
    ENV_AWS_ENDPOINT_URL,
    ENV_AWS_REGION,
    ENV_BACKEND_RETRY_SECONDS,
    ENV_BACKEND_TIMEOUT_SECONDS,
    ENV_IMAGE_PUBLIC_BASE_URL,
    ENV_LOCAL_PUBLIC_URL_PREFIX,
    ENV_LOCAL_STORAGE_DIR,
    ENV_PHOTO_METADATA_TABLE_NAME,
    ENV_PHOTO_S3_BUCKET_NAME,
    ENV_REDIS_URL,
    ENV_STORAGE_KEY_PREFIX,
    ENV_STORAGE_KV_BACKEND,
    ENV_STORAGE_METADATA_VARIANT,
    ENV_STORAGE_OBJECT_BACKEND,
    ENV_STORAGE_VARIANT,
    ENV_VERCEL,
    LOCAL_KEY_PREFIX,
    PHOTO_KEY_PREFIX,
)


class ObjectBackend(str, Enum):
    MEMORY = "memory"
    LOCAL = "local"
    S3 = "s3"


class KeyValueBackend(str, Enum):
    NONE = "none"
    MEMORY = "memory"
    LOCAL = "local"
    REDIS = "redis"
    DYNAMODB = "dynamodb"


STORAGE_PRESETS: dict[str, tuple[ObjectBackend, MetadataVariant, KeyValueBackend]] = {
    "local": (ObjectBackend.LOCAL, MetadataVariant.BULK, KeyValueBackend.LOCAL),
    "memory": (ObjectBackend.MEMORY, MetadataVariant.BULK, KeyValueBackend.MEMORY),
    "blob-redis": (ObjectBackend.S3, MetadataVariant.BULK, KeyValueBackend.REDIS),
    "s3-sidecar": (ObjectBackend.S3, MetadataVariant.SIDECAR_JSON, KeyValueBackend.DYNAMODB),
    "s3-native": (ObjectBackend.S3, MetadataVariant.NATIVE, KeyValueBackend.NONE),
    "s3-filename": (ObjectBackend.S3, MetadataVariant.FILENAME, KeyValueBackend.NONE),
}


class PortfolioSettings(BaseModel):
    """Validated service configuration."""

    model_config = ConfigDict(frozen=True)

    storage_variant: str = Field("local", description="Preset name the settings came from")
    object_backend: ObjectBackend = ObjectBackend.LOCAL
    metadata_variant: MetadataVariant = MetadataVariant.BULK
    kv_backend: KeyValueBackend = KeyValueBackend.LOCAL

    s3_bucket_name: str | None = None
    metadata_table_name: str | None = None
    aws_endpoint_url: str | None = None
    aws_region: str = DEFAULT_AWS_REGION
    image_public_base_url: str | None = None

    redis_url: str | None = None

    local_storage_dir: Path = Path(DEFAULT_LOCAL_STORAGE_DIR)
    local_public_url_prefix: str = DEFAULT_LOCAL_PUBLIC_URL_PREFIX

    admin_password: SecretStr | None = None
    backend_timeout_seconds: float = Field(DEFAULT_BACKEND_TIMEOUT_SECONDS, gt=0)
    backend_retry_seconds: float = Field(DEFAULT_BACKEND_RETRY_SECONDS, ge=0)

    object_key_prefix: str | None = Field(
        None, description="Key prefix for image objects; defaults per object backend"
    )

    @property
    def key_prefix(self) -> str:
        if self.object_key_prefix is not None:
            return self.object_key_prefix
        if self.object_backend is ObjectBackend.LOCAL:
            return LOCAL_KEY_PREFIX
        return PHOTO_KEY_PREFIX

    @model_validator(mode="after")
    def validate_pairing(self) -> "PortfolioSettings":
        variant = self.metadata_variant

        if variant is MetadataVariant.NATIVE and self.object_backend is ObjectBackend.LOCAL:
            raise ValueError("native metadata is not supported by the local object backend")

        needs_kv = variant in (MetadataVariant.SIDECAR_JSON, MetadataVariant.BULK)
        if needs_kv and self.kv_backend is KeyValueBackend.NONE:
            raise ValueError(f"{variant.value} metadata requires a key-value backend")

        if self.object_backend is ObjectBackend.S3 and not self.s3_bucket_name:
            raise ValueError(f"{ENV_PHOTO_S3_BUCKET_NAME} is required for the s3 object backend")

        if needs_kv and self.kv_backend is KeyValueBackend.REDIS and not self.redis_url:
            raise ValueError(f"{ENV_REDIS_URL} is required for the redis key-value backend")

        if (
            needs_kv
            and self.kv_backend is KeyValueBackend.DYNAMODB
            and not self.metadata_table_name
        ):
            raise ValueError(
                f"{ENV_PHOTO_METADATA_TABLE_NAME} is required for the dynamodb key-value backend"
            )

        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PortfolioSettings":
        """Build settings from environment variables.

        Without `STORAGE_VARIANT` the preset is `blob-redis` when running on
        Vercel (`VERCEL=1`) and `local` otherwise.

        Raises:
            ConfigurationError: If the preset is unknown or the resulting
                combination is invalid.
        """
        env = os.environ if environ is None else environ

        default_preset = "blob-redis" if env.get(ENV_VERCEL) == "1" else "local"
        preset = (env.get(ENV_STORAGE_VARIANT) or default_preset).strip().lower()

        if preset not in STORAGE_PRESETS:
            raise ConfigurationError(
                message=f"Unknown storage variant '{preset}'",
                details={"allowed": sorted(STORAGE_PRESETS)},
            )

        object_backend, metadata_variant, kv_backend = STORAGE_PRESETS[preset]

        values: dict[str, Any] = {
            "storage_variant": preset,
            "object_backend": _override(env, ENV_STORAGE_OBJECT_BACKEND) or object_backend,
            "metadata_variant": _override(env, ENV_STORAGE_METADATA_VARIANT) or metadata_variant,
            "kv_backend": _override(env, ENV_STORAGE_KV_BACKEND) or kv_backend,
            "s3_bucket_name": env.get(ENV_PHOTO_S3_BUCKET_NAME),
            "metadata_table_name": env.get(ENV_PHOTO_METADATA_TABLE_NAME),
            "aws_endpoint_url": env.get(ENV_AWS_ENDPOINT_URL),
            "aws_region": env.get(ENV_AWS_REGION) or DEFAULT_AWS_REGION,
            "image_public_base_url": env.get(ENV_IMAGE_PUBLIC_BASE_URL),
            "redis_url": env.get(ENV_REDIS_URL),
            "local_storage_dir": env.get(ENV_LOCAL_STORAGE_DIR) or DEFAULT_LOCAL_STORAGE_DIR,
            "local_public_url_prefix": (
                env.get(ENV_LOCAL_PUBLIC_URL_PREFIX) or DEFAULT_LOCAL_PUBLIC_URL_PREFIX
            ),
            "admin_password": env.get(ENV_ADMIN_PASSWORD) or None,
        }

        timeout = env.get(ENV_BACKEND_TIMEOUT_SECONDS)
        if timeout:
            values["backend_timeout_seconds"] = timeout

        retry = env.get(ENV_BACKEND_RETRY_SECONDS)
        if retry:
            values["backend_retry_seconds"] = retry

        # Empty is a valid prefix; only an unset variable falls back.
        if ENV_STORAGE_KEY_PREFIX in env:
            values["object_key_prefix"] = env[ENV_STORAGE_KEY_PREFIX].strip()

        try:
            return cls(**values)
        except PydanticValidationError as exc:
            raise ConfigurationError(
                message="Invalid storage configuration",
                details={
                    "errors": [err.get("msg", "invalid value") for err in exc.errors()],
                    "variant": preset,
                },
            ) from exc

    def redacted(self) -> dict[str, Any]:
        """Configuration summary that is safe to expose on a debug endpoint."""
        return {
            "storage_variant": self.storage_variant,
            "object_backend": self.object_backend.value,
            "metadata_variant": self.metadata_variant.value,
            "kv_backend": self.kv_backend.value,
            "has_bucket": bool(self.s3_bucket_name),
            "has_metadata_table": bool(self.metadata_table_name),
            "redis_url": _redact_url(self.redis_url),
            "aws_endpoint_url": self.aws_endpoint_url,
            "has_admin_password": self.admin_password is not None,
            "backend_timeout_seconds": self.backend_timeout_seconds,
            "backend_retry_seconds": self.backend_retry_seconds,
            "key_prefix": self.key_prefix,
        }


def _redact_url(value: str | None) -> str:
    """Keep only scheme and host so credentials never leak."""
    if not value:
        return "not-set"
    parts = urlsplit(value)
    return f"{parts.scheme}://{parts.hostname or ''}"


def _override(env: Mapping[str, str], name: str) -> str | None:
    value = (env.get(name) or "").strip().lower()
    return value or None
