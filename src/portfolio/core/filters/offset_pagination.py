"""
Offset-based pagination utilities.
"""

from collections.abc import Sequence
from typing import TypeVar

from portfolio.core.models.photo import PaginationInfo
from portfolio.core.utils.constants import DEFAULT_LIMIT, DEFAULT_OFFSET

ItemT = TypeVar("ItemT")


class OffsetPagination:
    """
    Offset-based pagination over an already ordered sequence.

    The gallery is fully reconciled and sorted before slicing, so a page
    boundary never splits records that share a sort key differently
    between requests.
    """

    @staticmethod
    def paginate(
        items: Sequence[ItemT],
        offset: int = DEFAULT_OFFSET,
        limit: int = DEFAULT_LIMIT,
    ) -> tuple[list[ItemT], int, bool]:
        """
        Slice one page out of items.

        Returns:
            A tuple containing:
            - paginated_items: List of items for the current page
            - total_count: Total number of items before pagination
            - has_more: True if more items exist beyond this page

        Example:
            items = [1, 2, 3, 4, 5]
            offset = 0
            limit = 2

            → ([1, 2], 5, True)
        """
        total_count = len(items)
        paginated_items = list(items[offset : offset + limit])
        has_more = offset + limit < total_count

        return paginated_items, total_count, has_more

    @staticmethod
    def page_info(*, offset: int, limit: int, total_count: int) -> PaginationInfo:
        has_more = offset + limit < total_count
        return PaginationInfo(
            limit=limit,
            offset=offset,
            has_more=has_more,
            next_offset=offset + limit if has_more else None,
        )
