"""Request/response schemas for user profile endpoints."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.schemas.auth import CredentialsRequest


def _camel(name: str, camel: str) -> dict:
    """Accept either spelling on input, emit camelCase on output."""
    return {"validation_alias": AliasChoices(name, camel), "serialization_alias": camel}


class UpdateUserRequest(CredentialsRequest):
    """New email and password for the caller's own account."""


class UserResponse(BaseModel):
    """User record as returned to clients (no password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: str
    is_active: bool = Field(..., **_camel("is_active", "isActive"))
    created_at: datetime = Field(..., **_camel("created_at", "createdAt"))
    updated_at: datetime = Field(..., **_camel("updated_at", "updatedAt"))


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
