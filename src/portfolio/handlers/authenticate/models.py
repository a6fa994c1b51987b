"""Pydantic models for admin login."""

from pydantic import BaseModel, Field


class AuthRequest(BaseModel):
    """Body of `POST /auth`."""

    password: str = Field(..., min_length=1, repr=False, description="Admin password")


class AuthResponse(BaseModel):
    """Bearer token returned on a successful login."""

    token: str = Field(..., description="Bearer token for admin requests")
    token_type: str = Field("Bearer", description="Authorization scheme")
