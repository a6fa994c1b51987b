"""Business logic for the scheduled index repair."""

from typing import Any

from aws_lambda_powertools import Logger

from portfolio.core.container import get_photo_repository
from portfolio.core.models.errors import BackendUnavailableError
from portfolio.core.repositories.photo_repository import PhotoRepository

logger = Logger(UTC=True)


class RepairService:
    """Reconnects degraded backends, then reconciles metadata with objects."""

    def __init__(self, repository: PhotoRepository | None = None) -> None:
        self.repository = repository or get_photo_repository()

    def run(self) -> dict[str, Any]:
        """Run one repair pass.

        Raises:
            BackendUnavailableError: If a backend is still unreachable after
                reconnecting, or fails during the pass.
        """
        try:
            self.repository.recover()
        except BackendUnavailableError as exc:
            logger.warning(
                "Skipping repair, backends unavailable",
                extra={"details": exc.details},
            )
            raise

        report = self.repository.repair()
        return {
            "variant": self.repository.variant.value,
            "removed_ids": report.removed_ids,
            "orphan_keys": report.orphan_keys,
            "duplicate_keys": report.duplicate_keys,
        }
