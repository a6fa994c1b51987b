"""
Lambda handler responsible for returning one photo record.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.models.errors import NotFoundError
from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.response import ResponseBuilder
from portfolio.core.utils.validators import validate_request

from .models import GetPhotoRequest
from .service import GetService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle `GET /photos/{photo_id}`.

    Args:
        event: API Gateway event payload.
        context: AWS Lambda runtime context.

    Returns:
        200 with the photo record, 404 when the id is unknown.
    """
    path_params = event.get("pathParameters") or {}

    logger.info(
        "Received get photo request",
        extra={
            "path": event.get("path"),
            "photo_id": path_params.get("photo_id"),
            "request_id": getattr(context, "aws_request_id", None),
        },
    )

    is_valid, result = validate_request(GetPhotoRequest, {"photo_id": path_params.get("photo_id")})
    if not is_valid:
        return result

    request: GetPhotoRequest = result
    service = GetService()

    try:
        record = service.get_photo(request.photo_id)
    except NotFoundError as exc:
        logger.info("Photo not found", extra={"photo_id": request.photo_id})
        return ResponseBuilder.not_found(exc.message, error=exc.error_code)

    return ResponseBuilder.ok({"photo": record.to_wire()})
