"""Parsing of multipart/form-data bodies from API Gateway events."""

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from aws_lambda_powertools import Logger
from python_multipart import create_form_parser
from python_multipart.exceptions import FormParserError

from portfolio.core.models.errors import ValidationError
from portfolio.core.utils.constants import (
    ERROR_CODE_FILE_SIZE_EXCEEDED,
    MAX_FILE_SIZE,
    get_max_file_size_mb,
)

logger = Logger(UTC=True)

# Room for boundaries, part headers and the text fields around the file.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


@dataclass(frozen=True)
class UploadedFile:
    field_name: str
    file_name: str
    data: bytes


@dataclass
class MultipartForm:
    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, UploadedFile] = field(default_factory=dict)


def event_body_bytes(event: Mapping[str, Any]) -> bytes:
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(message="Request body is not valid base64") from exc
    return body.encode("utf-8") if isinstance(body, str) else bytes(body)


def _header(headers: Mapping[str, Any] | None, name: str) -> str | None:
    for key, value in (headers or {}).items():
        if key.lower() == name:
            return str(value)
    return None


def parse_multipart(event: Mapping[str, Any]) -> MultipartForm:
    """Parse a multipart/form-data request into text fields and files.

    Raises:
        ValidationError: If the body is not multipart, too large, or malformed.
    """
    content_type = _header(event.get("headers"), "content-type")
    if not content_type or not content_type.lower().startswith("multipart/form-data"):
        raise ValidationError(
            message="Request must be multipart/form-data",
            details={"content_type": content_type},
        )

    body = event_body_bytes(event)
    if len(body) > MAX_FILE_SIZE + MULTIPART_OVERHEAD_BYTES:
        raise ValidationError(
            message=f"File size exceeds maximum allowed size of {get_max_file_size_mb()}MB",
            error_code=ERROR_CODE_FILE_SIZE_EXCEEDED,
            details={"size": len(body), "max_size": MAX_FILE_SIZE},
        )

    form = MultipartForm()

    def on_field(part: Any) -> None:
        name = part.field_name.decode("utf-8", errors="replace")
        value = part.value or b""
        form.fields[name] = value.decode("utf-8", errors="replace")

    def on_file(part: Any) -> None:
        name = part.field_name.decode("utf-8", errors="replace")
        file_name = (part.file_name or b"").decode("utf-8", errors="replace")
        handle = part.file_object
        handle.seek(0)
        form.files[name] = UploadedFile(field_name=name, file_name=file_name, data=handle.read())
        part.close()

    try:
        parser = create_form_parser(
            {"Content-Type": content_type, "Content-Length": str(len(body))},
            on_field,
            on_file,
            config={"MAX_MEMORY_FILE_SIZE": len(body) + 1},
        )
        parser.write(body)
        parser.finalize()
    except (FormParserError, ValueError) as exc:
        logger.warning("Malformed multipart body", extra={"error": str(exc)})
        raise ValidationError(message="Malformed multipart body") from exc

    logger.debug(
        "Parsed multipart body",
        extra={"fields": sorted(form.fields), "files": sorted(form.files)},
    )
    return form
