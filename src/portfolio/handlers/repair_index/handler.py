"""
Scheduled Lambda handler that repairs the photo index.

Triggered by an EventBridge schedule, not API Gateway. Removes metadata
left behind by partially applied deletes and reports images that were
stored but never indexed.
"""

from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from portfolio.core.models.errors import BackendUnavailableError
from portfolio.core.utils.time import utc_now_iso

from .service import RepairService

logger = Logger(UTC=True)
tracer = Tracer()
metrics = Metrics()


@tracer.capture_lambda_handler
@metrics.log_metrics()
def handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    logger.info(
        "Starting scheduled index repair",
        extra={
            "source": event.get("source"),
            "request_id": getattr(context, "aws_request_id", None),
        },
    )

    try:
        result = RepairService().run()
    except BackendUnavailableError as exc:
        return {
            "status": "skipped",
            "error": exc.error_code,
            "details": exc.details,
            "timestamp": utc_now_iso(),
        }

    logger.info(
        "Index repair complete",
        extra={
            "removed": len(result["removed_ids"]),
            "orphans": len(result["orphan_keys"]),
        },
    )
    return {"status": "ok", **result, "timestamp": utc_now_iso()}
