"""Global constants used throughout the application.

This module centralizes all magic numbers, string literals, and configuration
values that are used across multiple modules. Using constants prevents hardcoding
values and makes it easy to change them globally.
"""

from typing import Final

# ============================================================================
# Error Codes
# ============================================================================


# Validation Errors
ERROR_CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_CODE_UNSUPPORTED_MIME_TYPE = "UNSUPPORTED_MIME_TYPE"
ERROR_CODE_FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
ERROR_CODE_METADATA_TOO_LARGE = "METADATA_TOO_LARGE"

# Not Found Errors
ERROR_CODE_RESOURCE_NOT_FOUND = "NOT_FOUND"
ERROR_CODE_PHOTO_NOT_FOUND = "PHOTO_NOT_FOUND"

# Auth Errors
ERROR_CODE_UNAUTHORIZED = "UNAUTHORIZED"

# Storage Errors
ERROR_CODE_STORAGE = "STORAGE_ERROR"
ERROR_CODE_BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
ERROR_CODE_OBJECT_CONFLICT = "OBJECT_CONFLICT"
ERROR_CODE_IMAGE_UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"
ERROR_CODE_IMAGE_DOWNLOAD_FAILED = "IMAGE_DOWNLOAD_FAILED"
ERROR_CODE_IMAGE_DELETE_FAILED = "IMAGE_DELETE_FAILED"
ERROR_CODE_IMAGE_LIST_FAILED = "IMAGE_LIST_FAILED"

# Metadata Errors
ERROR_CODE_METADATA_READ_FAILED = "METADATA_READ_FAILED"
ERROR_CODE_METADATA_WRITE_FAILED = "METADATA_WRITE_FAILED"
ERROR_CODE_METADATA_DELETE_FAILED = "METADATA_DELETE_FAILED"
ERROR_CODE_METADATA_DECODE_FAILED = "METADATA_DECODE_FAILED"

# Partial writes
ERROR_CODE_STORED_NOT_INDEXED = "STORED_NOT_INDEXED"
ERROR_CODE_DELETED_STILL_INDEXED = "DELETED_STILL_INDEXED"

# Configuration
ERROR_CODE_CONFIGURATION = "CONFIGURATION_ERROR"


# ============================================================================
# Upload Constraints
# ============================================================================

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB in bytes

MIME_TYPE_EXTENSION_MAP: Final[dict[str, tuple[str, ...]]] = {
    "image/jpeg": ("jpg", "jpeg"),
    "image/png": ("png",),
    "image/gif": ("gif",),
    "image/webp": ("webp",),
}

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000

# ============================================================================
# Image Transform
# ============================================================================

TRANSFORM_MAX_WIDTH = 1920
TRANSFORM_JPEG_QUALITY = 85
TRANSFORM_CONTENT_TYPE = "image/jpeg"
TRANSFORM_EXTENSION = "jpg"

# ============================================================================
# Storage Layout
# ============================================================================

PHOTO_KEY_PREFIX = "photos/"
# Local uploads sit directly in the uploads directory, served as /uploads/<id><ext>
LOCAL_KEY_PREFIX = ""
BULK_COLLECTION_KEY = "photos"
SIDECAR_KEY_PREFIX = "photo:"

# Characters removed from titles before they are percent-encoded into keys
FILENAME_TOKEN_STRIPPED_CHARS = ".'()*"
FILENAME_TOKEN_ID_SEGMENTS = 5
PLACEHOLDER_ID_PREFIX_LENGTH = 8

# S3 user-defined metadata is limited to 2 KB per object
NATIVE_METADATA_MAX_BYTES = 2 * 1024
NATIVE_METADATA_PREFIX = "photo-"

# Filename tokens may carry seconds or milliseconds; below this they are seconds
MILLISECOND_TIMESTAMP_THRESHOLD = 10**11

# ============================================================================
# Pagination Constraints
# ============================================================================

DEFAULT_LIMIT = 50
MIN_LIMIT = 1
MAX_LIMIT = 500
DEFAULT_OFFSET = 0

# ============================================================================
# Backend Clients
# ============================================================================

DEFAULT_BACKEND_TIMEOUT_SECONDS = 5.0
DEFAULT_BACKEND_MAX_ATTEMPTS = 2
DEFAULT_BACKEND_RETRY_SECONDS = 5.0

# ============================================================================
# API Gateway Configuration
# ============================================================================

CORS_ORIGIN = "*"
CORS_METHODS = "GET,POST,PUT,DELETE,OPTIONS"
CORS_HEADERS = "Origin,X-Requested-With,Content-Type,Accept,Authorization"
EXPOSE_HEADERS = "Content-Type,Content-Length"
DEFAULT_CONTENT_TYPE = "application/json"

AUTH_TOKEN_CONTEXT = b"portfolio-admin-token"

# ============================================================================
# Environment Variable Names
# ============================================================================

ENV_STORAGE_VARIANT = "STORAGE_VARIANT"
ENV_STORAGE_OBJECT_BACKEND = "STORAGE_OBJECT_BACKEND"
ENV_STORAGE_METADATA_VARIANT = "STORAGE_METADATA_VARIANT"
ENV_STORAGE_KV_BACKEND = "STORAGE_KV_BACKEND"
ENV_VERCEL = "VERCEL"
ENV_AWS_ENDPOINT_URL = "AWS_ENDPOINT_URL"
ENV_AWS_REGION = "AWS_REGION"
ENV_PHOTO_S3_BUCKET_NAME = "PHOTO_S3_BUCKET_NAME"
ENV_PHOTO_METADATA_TABLE_NAME = "PHOTO_METADATA_TABLE_NAME"
ENV_IMAGE_PUBLIC_BASE_URL = "IMAGE_PUBLIC_BASE_URL"
ENV_REDIS_URL = "REDIS_URL"
ENV_LOCAL_STORAGE_DIR = "LOCAL_STORAGE_DIR"
ENV_LOCAL_PUBLIC_URL_PREFIX = "LOCAL_PUBLIC_URL_PREFIX"
ENV_ADMIN_PASSWORD = "ADMIN_PASSWORD"
ENV_BACKEND_TIMEOUT_SECONDS = "BACKEND_TIMEOUT_SECONDS"
ENV_BACKEND_RETRY_SECONDS = "BACKEND_RETRY_SECONDS"
ENV_STORAGE_KEY_PREFIX = "STORAGE_KEY_PREFIX"

DEFAULT_AWS_REGION = "us-east-1"
DEFAULT_LOCAL_STORAGE_DIR = "."
DEFAULT_LOCAL_PUBLIC_URL_PREFIX = "/uploads"


def get_max_file_size_mb() -> int:
    """Get maximum file size in megabytes."""
    return MAX_FILE_SIZE // (1024 * 1024)
