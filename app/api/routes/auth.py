"""Login, signup, token refresh and profile endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_auth_service, require_refresh_token, require_roles
from app.models import Role
from app.schemas.auth import (
    AccessTokenResponse,
    CurrentUser,
    RefreshIdentity,
    RefreshTokenRequest,
    SignInRequest,
    SignUpRequest,
    TokenPairResponse,
)
from app.services.auth import AuthService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=TokenPairResponse)
def login(
    body: SignInRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenPairResponse:
    """
    Authenticate with email and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    return auth_service.sign_in(body.email, body.password)


@router.post("/signup", response_model=TokenPairResponse)
def signup(
    body: SignUpRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenPairResponse:
    """Register a new account (role USER) and sign it in."""
    return auth_service.sign_up(body.email, body.password)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh(
    body: RefreshTokenRequest,
    identity: Annotated[RefreshIdentity, Depends(require_refresh_token)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> AccessTokenResponse:
    """Exchange a refresh token (Bearer) for a new access token."""
    return auth_service.refresh(body.email, subject_id=identity.user_id)


@router.get("/profile", response_model=CurrentUser)
def profile(
    current_user: Annotated[CurrentUser, Depends(require_roles(Role.USER, Role.ADMIN))],
) -> CurrentUser:
    """Return the identity bound to the access token."""
    logger.info("Fetching profile: user_id=%s", current_user.user_id)
    return current_user
