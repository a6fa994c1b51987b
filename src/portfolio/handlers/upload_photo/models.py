"""Pydantic models for photo upload request/response."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from portfolio.core.utils.constants import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH

ORIGINAL_NAME_MAX_LENGTH = 255


class UploadPhotoRequest(BaseModel):
    """Validation model for the text fields of a multipart upload."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH, description="Display title")
    description: str = Field(
        "", max_length=DESCRIPTION_MAX_LENGTH, description="Optional description"
    )
    original_name: str = Field(
        "", max_length=ORIGINAL_NAME_MAX_LENGTH, description="File name supplied by the uploader"
    )


class UploadPhotoResponse(BaseModel):
    """Response model for a successful upload."""

    message: str = Field(..., description="Success message")
    photo: dict[str, Any] = Field(..., description="The stored photo record")
