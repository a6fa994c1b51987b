"""Business logic for photo deletion."""

from aws_lambda_powertools import Logger

from portfolio.core.container import get_photo_repository
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.repositories.photo_repository import PhotoRepository

logger = Logger(UTC=True)


class DeleteService:
    """Application service that removes a photo and its metadata."""

    def __init__(self, repository: PhotoRepository | None = None) -> None:
        self.repository = repository or get_photo_repository()

    def delete_photo(self, photo_id: str) -> PhotoRecord:
        """Delete photo_id and return the removed record.

        Raises:
            NotFoundError: If no visible photo has this id
            BackendUnavailableError: If the image could not be deleted
            PartialWriteError: If the image is gone but metadata remains
        """
        record = self.repository.delete(photo_id)
        logger.info("Photo deleted successfully", extra={"photo_id": photo_id, "key": record.key})
        return record
