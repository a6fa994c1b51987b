"""
Lambda handler responsible for photo uploads.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.container import get_settings
from portfolio.core.models.errors import ValidationError
from portfolio.core.utils.auth import require_admin
from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.multipart import parse_multipart
from portfolio.core.utils.response import ResponseBuilder
from portfolio.core.utils.validators import validate_request

from .models import UploadPhotoRequest, UploadPhotoResponse
from .service import UploadService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()

PHOTO_FIELD = "photo"


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle `POST /photos` with a multipart body.

    This function:
     - Rejects requests without the admin bearer token
     - Parses the `title`, `description` and `photo` form fields
     - Stores the photo through the repository

    Args:
        event: API Gateway event payload.
        context: AWS Lambda runtime context.

    Returns:
        201 with the stored record, or 202 when the image was stored but
        could not be indexed.
    """
    logger.info(
        "Received photo upload request",
        extra={
            "http_method": event.get("httpMethod"),
            "path": event.get("path"),
            "request_id": getattr(context, "aws_request_id", None),
            "function_name": getattr(context, "function_name", None),
        },
    )

    require_admin(event, get_settings())

    form = parse_multipart(event)
    upload = form.files.get(PHOTO_FIELD)
    if upload is None:
        raise ValidationError(
            message="A photo file is required",
            details={"field": PHOTO_FIELD},
        )

    is_valid, result = validate_request(
        UploadPhotoRequest,
        {
            "title": form.fields.get("title", ""),
            "description": form.fields.get("description", ""),
            "original_name": upload.file_name,
        },
    )
    if not is_valid:
        return result

    request: UploadPhotoRequest = result
    service = UploadService()

    record = service.upload_photo(
        title=request.title,
        description=request.description,
        file_data=upload.data,
        original_name=request.original_name,
    )

    response = UploadPhotoResponse(
        message="Photo uploaded successfully",
        photo=record.to_wire(),
    )
    return ResponseBuilder.created(response.model_dump())
