"""Business logic for listing the gallery."""

from aws_lambda_powertools import Logger

from portfolio.core.container import get_photo_repository
from portfolio.core.filters.offset_pagination import OffsetPagination
from portfolio.core.models.photo import PhotoRecord
from portfolio.core.repositories.photo_repository import PhotoRepository

logger = Logger(UTC=True)


class ListService:
    """Application service for the gallery listing.

    The repository already returns the reconciled gallery in display
    order; this service only cuts the requested page out of it.
    """

    def __init__(self, repository: PhotoRepository | None = None) -> None:
        self.repository = repository or get_photo_repository()

    def list_photos(self, *, offset: int, limit: int) -> tuple[list[PhotoRecord], int, bool]:
        records = self.repository.list()
        page, total_count, has_more = OffsetPagination.paginate(records, offset, limit)

        logger.debug(
            "Gallery page selected",
            extra={
                "offset": offset,
                "limit": limit,
                "total_count": total_count,
                "returned_count": len(page),
            },
        )
        return page, total_count, has_more
