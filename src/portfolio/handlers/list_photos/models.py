"""
Pydantic models for the gallery listing request.
"""

from pydantic import BaseModel, ConfigDict, Field

from portfolio.core.utils.constants import DEFAULT_LIMIT, DEFAULT_OFFSET, MAX_LIMIT, MIN_LIMIT


class ListPhotosRequest(BaseModel):
    """Validation model for the list photos API."""

    model_config = ConfigDict(str_strip_whitespace=True)

    limit: int = Field(
        default=DEFAULT_LIMIT,
        ge=MIN_LIMIT,
        le=MAX_LIMIT,
        description=f"Results per page ({MIN_LIMIT}-{MAX_LIMIT})",
    )
    offset: int = Field(
        default=DEFAULT_OFFSET,
        ge=0,
        description="Pagination offset",
    )
