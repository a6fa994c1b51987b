"""
Lambda handler that exchanges the admin password for a bearer token.
"""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.multipart import event_body_bytes
from portfolio.core.utils.response import ResponseBuilder
from portfolio.core.utils.validators import validate_request

from .models import AuthRequest, AuthResponse
from .service import AuthService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Handle `POST /auth` with a JSON body `{"password": ...}`."""
    logger.info(
        "Received admin login request",
        extra={"request_id": getattr(context, "aws_request_id", None)},
    )

    raw = event_body_bytes(event)
    body = json.loads(raw) if raw else {}
    if not isinstance(body, dict):
        return ResponseBuilder.bad_request("Request body must be a JSON object")

    is_valid, result = validate_request(AuthRequest, body)
    if not is_valid:
        return result

    request: AuthRequest = result
    token = AuthService().authenticate(request.password)

    logger.info("Admin login succeeded")
    return ResponseBuilder.ok(AuthResponse(token=token).model_dump())
