"""
Lambda handler responsible for listing the gallery with offset pagination.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.filters.offset_pagination import OffsetPagination
from portfolio.core.models.photo import PhotoListResponse
from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.response import ResponseBuilder
from portfolio.core.utils.validators import validate_request

from .models import ListPhotosRequest
from .service import ListService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """
    Handle `GET /photos`.

    An unreachable backend yields an empty gallery rather than an error,
    so this endpoint answers 200 whenever the request itself is valid.
    """
    params = event.get("queryStringParameters") or {}

    logger.info(
        "Received list photos request",
        extra={
            "query_params": params,
            "request_id": getattr(context, "aws_request_id", None),
        },
    )

    is_valid, result = validate_request(ListPhotosRequest, params)
    if not is_valid:
        return result

    request: ListPhotosRequest = result
    service = ListService()

    records, total_count, _ = service.list_photos(offset=request.offset, limit=request.limit)

    response = PhotoListResponse(
        photos=[record.to_wire() for record in records],
        total_count=total_count,
        returned_count=len(records),
        pagination=OffsetPagination.page_info(
            offset=request.offset,
            limit=request.limit,
            total_count=total_count,
        ),
    )

    return ResponseBuilder.ok(response.model_dump(mode="json"))
