"""Pydantic models for single-photo lookups."""

from pydantic import BaseModel, ConfigDict, Field

PHOTO_ID_MAX_LENGTH = 200


class GetPhotoRequest(BaseModel):
    """Validation model for `/photos/{photo_id}` path parameters."""

    model_config = ConfigDict(str_strip_whitespace=True)

    photo_id: str = Field(
        ...,
        min_length=1,
        max_length=PHOTO_ID_MAX_LENGTH,
        description="Photo identifier",
    )
