"""Business logic for the health endpoint."""

from typing import Any

from portfolio.core.config import PortfolioSettings
from portfolio.core.container import get_photo_repository, get_settings
from portfolio.core.infrastructure.connection import ConnectionState
from portfolio.core.repositories.photo_repository import PhotoRepository
from portfolio.core.utils.time import utc_now_iso


class HealthService:
    """Reports the active storage pairing and backend connection states.

    Never contacts a backend: states are whatever the last call left them.
    """

    def __init__(
        self,
        repository: PhotoRepository | None = None,
        settings: PortfolioSettings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = repository or get_photo_repository()

    def status(self) -> dict[str, Any]:
        connections = self.repository.connection_states()
        degraded = sorted(
            name for name, state in connections.items() if state == ConnectionState.DEGRADED.value
        )

        return {
            "status": "degraded" if degraded else "ok",
            "variant": self.repository.variant.value,
            "connections": connections,
            "degraded": degraded,
            "config": self.settings.redacted(),
            "timestamp": utc_now_iso(),
        }
