"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccessTokenResponse,
    CurrentUser,
    RefreshIdentity,
    RefreshTokenRequest,
    SignInRequest,
    SignUpRequest,
    TokenPairResponse,
    TokenPayload,
)
from app.schemas.health import HealthResponse
from app.schemas.users import MessageResponse, UpdateUserRequest, UserResponse

__all__ = [
    "AccessTokenResponse",
    "CurrentUser",
    "HealthResponse",
    "MessageResponse",
    "RefreshIdentity",
    "RefreshTokenRequest",
    "SignInRequest",
    "SignUpRequest",
    "TokenPairResponse",
    "TokenPayload",
    "UpdateUserRequest",
    "UserResponse",
]
