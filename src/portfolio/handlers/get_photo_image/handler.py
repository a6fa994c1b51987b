"""
Lambda handler that streams the stored image bytes of one photo.

Needed for the memory and local object backends, whose locators are not
reachable from a browser.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.models.errors import NotFoundError
from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.response import ResponseBuilder
from portfolio.core.utils.validators import validate_request
from portfolio.handlers.get_photo.models import GetPhotoRequest
from portfolio.handlers.get_photo.service import GetService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()

IMAGE_CACHE_CONTROL = "public, max-age=31536000, immutable"


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Handle `GET /photos/{photo_id}/image`."""
    path_params = event.get("pathParameters") or {}

    is_valid, result = validate_request(GetPhotoRequest, {"photo_id": path_params.get("photo_id")})
    if not is_valid:
        return result

    request: GetPhotoRequest = result
    service = GetService()

    try:
        content, content_type = service.get_image(request.photo_id)
    except NotFoundError as exc:
        logger.info("Photo image not found", extra={"photo_id": request.photo_id})
        return ResponseBuilder.not_found(exc.message, error=exc.error_code)

    logger.info(
        "Serving photo image",
        extra={"photo_id": request.photo_id, "size": len(content), "content_type": content_type},
    )

    # Keys are derived from never-reused ids, so the payload never changes.
    return ResponseBuilder.binary_response(
        content,
        content_type=content_type,
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )
