"""Request-time guards and service dependencies.

Each protected route declares an ordered chain of capability checks:
api key -> bearer token (access or refresh) -> role whitelist -> handler.
Ownership is checked inside UserService because it needs the path id.
"""

import logging
import secrets
from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.security import decode_access_token, decode_refresh_token
from app.models import Role
from app.repositories import UserRepository
from app.schemas.auth import CurrentUser, RefreshIdentity, TokenPayload
from app.services.auth import AuthService
from app.services.events import EventPublisher
from app.services.users import UserService

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)
api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_publisher(request: Request) -> EventPublisher:
    """The process-wide publisher created in the app lifespan (or injected in create_app)."""
    publisher = getattr(request.app.state, "publisher", None)
    if publisher is None:
        raise RuntimeError("Event publisher is not initialized")
    return publisher


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserRepository:
    return UserRepository(db)


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    publisher: Annotated[EventPublisher, Depends(get_publisher)],
    settings: SettingsDep,
) -> AuthService:
    return AuthService(users, publisher, settings)


def get_user_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    publisher: Annotated[EventPublisher, Depends(get_publisher)],
    settings: SettingsDep,
) -> UserService:
    return UserService(users, publisher, settings)


def require_api_key(
    api_key: Annotated[str | None, Depends(api_key_header)],
    settings: SettingsDep,
) -> None:
    """Reject requests without the configured x-api-key. Skipped when X_API_KEY is unset."""
    if settings.X_API_KEY is None:
        return
    expected = settings.X_API_KEY.get_secret_value()
    if not api_key or not secrets.compare_digest(api_key, expected):
        raise ForbiddenError("Invalid API Key")


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    return credentials.credentials


def _parse_payload(claims: dict) -> TokenPayload:
    try:
        return TokenPayload.model_validate(claims)
    except PydanticValidationError:
        raise UnauthorizedError("Invalid token payload")


def require_access_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    settings: SettingsDep,
) -> CurrentUser:
    """Verify an access token and bind it to the user's persisted role. Raises 401."""
    token = _bearer_token(credentials)
    try:
        claims = decode_access_token(token, settings)
    except jwt.PyJWTError as e:
        logger.info("Access token rejected: %s", e)
        raise UnauthorizedError("Invalid or expired token")
    return auth_service.validate_user_role(_parse_payload(claims))


def require_refresh_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
    settings: SettingsDep,
) -> RefreshIdentity:
    """Verify a refresh token; the role claim is not re-checked. Raises 401."""
    token = _bearer_token(credentials)
    try:
        claims = decode_refresh_token(token, settings)
    except jwt.PyJWTError as e:
        logger.info("Refresh token rejected: %s", e)
        raise UnauthorizedError("Invalid or expired refresh token")
    payload = _parse_payload(claims)
    return RefreshIdentity(user_id=payload.sub, email=payload.email)


def require_roles(*roles: Role) -> Callable[..., CurrentUser]:
    """Role guard factory: 403 unless the authenticated role is whitelisted. No roles allows all."""
    allowed = {r.value for r in roles}

    def role_guard(
        current_user: Annotated[CurrentUser, Depends(require_access_token)],
    ) -> CurrentUser:
        if allowed and current_user.role not in allowed:
            raise ForbiddenError()
        return current_user

    return role_guard
