"""Pydantic models for photo deletion."""

from pydantic import BaseModel, Field


class DeletePhotoResponse(BaseModel):
    """Response model for a successful deletion."""

    message: str = Field(..., description="Success message")
    photo_id: str = Field(..., description="Identifier of the deleted photo")
    deleted_at: str = Field(..., description="Deletion timestamp (UTC)")
