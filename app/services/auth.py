"""Authentication service: credential validation, registration and token issuance."""

import logging
from datetime import UTC, datetime

from app.core.config import Settings
from app.core.errors import ConflictError, UnauthorizedError
from app.core.security import (
    build_claims,
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from app.models import Role, User
from app.repositories import UserRepository
from app.schemas.auth import AccessTokenResponse, CurrentUser, TokenPairResponse, TokenPayload
from app.schemas.users import UserResponse
from app.services.events import EventPublisher, user_event

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password provided."


class AuthService:
    """Business rules for sign-in, sign-up, refresh and per-request role binding."""

    def __init__(
        self,
        users: UserRepository,
        publisher: EventPublisher,
        settings: Settings,
    ) -> None:
        self._users = users
        self._publisher = publisher
        self._settings = settings

    def validate_user(self, email: str, password: str) -> UserResponse | None:
        """
        Return the user (without password) when email and password match, else None.
        Unknown email and wrong password are indistinguishable to the caller.
        """
        user = self._users.find_by_email(email)
        if user is not None and verify_password(password, user.password):
            return UserResponse.model_validate(user)
        logger.warning("User validation failed: email=%s", email)
        return None

    def sign_in(self, email: str, password: str) -> TokenPairResponse:
        logger.info("Signing in user: email=%s", email)
        user = self._users.find_by_email(email)
        if user is None or not verify_password(password, user.password):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        return self._issue_tokens(user)

    def sign_up(self, email: str, password: str) -> TokenPairResponse:
        """
        Register a USER account, publish the created event, and return both tokens.
        Raises ConflictError when the email is taken (checked before any write).
        """
        logger.info("Signing up user: email=%s", email)
        if self._users.exists_by_email(email):
            raise ConflictError()
        password_hash = hash_password(password, rounds=self._settings.BCRYPT_ROUNDS)
        user = self._users.create(email, password_hash, now=datetime.now(UTC), role=Role.USER)
        self._publisher.emit(
            self._settings.USER_CREATED_TOPIC,
            key=str(user.id),
            value=user_event(user, is_active=True),
        )
        return self._issue_tokens(user)

    def refresh(self, email: str, subject_id: int | None = None) -> AccessTokenResponse:
        """
        Mint a new access token for email. The refresh token itself is verified by
        the guard; here we only require the subject to still exist and, when
        subject_id is given, to be the account the refresh token was issued for.
        """
        logger.info("Refreshing access token: email=%s", email)
        user = self._users.find_by_email(email)
        if user is None:
            raise UnauthorizedError()
        if subject_id is not None and user.id != subject_id:
            raise UnauthorizedError("Refresh token does not belong to this account.")
        claims = build_claims(user.id, user.email, user.role)
        return AccessTokenResponse(access_token=create_access_token(claims, self._settings))

    def validate_user_role(self, payload: TokenPayload) -> CurrentUser:
        """Bind an access token to the user's persisted role; a changed role invalidates it."""
        user = self._users.find_by_id(payload.sub)
        if user is None:
            raise UnauthorizedError("User not found")
        if user.role != payload.role:
            logger.warning(
                "Token role mismatch: user_id=%s token_role=%s stored_role=%s",
                user.id,
                payload.role,
                user.role,
            )
            raise UnauthorizedError("Token role is no longer valid")
        return CurrentUser(user_id=user.id, email=user.email, role=user.role)

    def _issue_tokens(self, user: User) -> TokenPairResponse:
        claims = build_claims(user.id, user.email, user.role)
        return TokenPairResponse(
            access_token=create_access_token(claims, self._settings),
            refresh_token=create_refresh_token(claims, self._settings),
        )
