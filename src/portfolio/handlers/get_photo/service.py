"""Business logic for photo lookups."""

from aws_lambda_powertools import Logger

from portfolio.core.container import get_photo_repository
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.repositories.photo_repository import PhotoRepository

logger = Logger(UTC=True)


class GetService:
    """Application service for reading one photo and its image payload."""

    def __init__(self, repository: PhotoRepository | None = None) -> None:
        self.repository = repository or get_photo_repository()

    def get_photo(self, photo_id: str) -> PhotoRecord:
        """Return the record for photo_id.

        Raises:
            NotFoundError: If no visible photo has this id.
            BackendUnavailableError: If a backend cannot be reached.
        """
        record = self.repository.get(photo_id)
        logger.debug("Photo found", extra={"photo_id": photo_id, "placeholder": record.placeholder})
        return record

    def get_image(self, photo_id: str) -> tuple[bytes, str]:
        return self.repository.read_image(photo_id)
