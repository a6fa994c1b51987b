"""
Lambda handler responsible for photo deletion.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.container import get_settings
from portfolio.core.models.errors import NotFoundError
from portfolio.core.utils.auth import require_admin
from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.response import ResponseBuilder
from portfolio.core.utils.time import utc_now_iso
from portfolio.core.utils.validators import validate_request
from portfolio.handlers.get_photo.models import GetPhotoRequest

from .models import DeletePhotoResponse
from .service import DeleteService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle `DELETE /photos/{photo_id}`.

    Requires the admin bearer token. Unknown ids answer 404 and change
    nothing.
    """
    path_params = event.get("pathParameters") or {}

    logger.info(
        "Received delete photo request",
        extra={
            "photo_id": path_params.get("photo_id"),
            "request_id": getattr(context, "aws_request_id", None),
        },
    )

    require_admin(event, get_settings())

    is_valid, result = validate_request(GetPhotoRequest, {"photo_id": path_params.get("photo_id")})
    if not is_valid:
        return result

    request: GetPhotoRequest = result
    service = DeleteService()

    try:
        service.delete_photo(request.photo_id)
    except NotFoundError as exc:
        logger.info("Photo not found during delete", extra={"photo_id": request.photo_id})
        return ResponseBuilder.not_found(exc.message, error=exc.error_code)

    response = DeletePhotoResponse(
        message="Photo deleted successfully",
        photo_id=request.photo_id,
        deleted_at=utc_now_iso(),
    )
    return ResponseBuilder.ok(response.model_dump())
