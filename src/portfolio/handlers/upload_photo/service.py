"""Business logic for photo uploads.

The repository does the heavy lifting (transform, object write, metadata
write). A metadata failure after the image was stored surfaces as
`PartialWriteError` and is passed through untouched so the handler can
answer "stored but not indexed".
"""

from aws_lambda_powertools import Logger

from portfolio.core.container import get_photo_repository
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.repositories.photo_repository import PhotoRepository

logger = Logger(UTC=True)


class UploadService:
    """Application service responsible for photo uploads."""

    def __init__(self, repository: PhotoRepository | None = None) -> None:
        self.repository = repository or get_photo_repository()

    def upload_photo(
        self,
        *,
        title: str,
        description: str,
        file_data: bytes,
        original_name: str,
    ) -> PhotoRecord:
        """Store a photo and return its record.

        Raises:
            ValidationError: If the title or image is rejected
            BackendUnavailableError: If the image could not be stored
            PartialWriteError: If the image was stored but not indexed
        """
        logger.debug(
            "Starting photo upload",
            extra={"original_name": original_name, "size": len(file_data)},
        )

        record = self.repository.put(
            title=title,
            description=description,
            image_bytes=file_data,
            original_name=original_name,
        )

        logger.info(
            "Photo uploaded successfully",
            extra={"photo_id": record.id, "variant": self.repository.variant.value},
        )
        return record
