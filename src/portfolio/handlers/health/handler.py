"""
Lambda handler for `GET /health`.

Reports the active storage variant, the state of every backend
connection and a redacted copy of the configuration.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.utils.decorators import api_gateway_handler
from portfolio.core.utils.response import ResponseBuilder

from .service import HealthService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@api_gateway_handler
@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    status = HealthService().status()

    if status["degraded"]:
        logger.warning("Health check reports degraded backends", extra={"degraded": status["degraded"]})

    return ResponseBuilder.ok(status)
