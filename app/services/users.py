"""Profile read, update and delete with ownership rules."""

import logging
from datetime import UTC, datetime

from app.core.config import Settings
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.security import hash_password
from app.models import Role, User
from app.repositories import UserRepository
from app.schemas.auth import CurrentUser
from app.schemas.users import MessageResponse, UserResponse
from app.services.events import EventPublisher, user_event

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        users: UserRepository,
        publisher: EventPublisher,
        settings: Settings,
    ) -> None:
        self._users = users
        self._publisher = publisher
        self._settings = settings

    def get_user(self, user_id: int, caller: CurrentUser) -> UserResponse:
        """Admins may read any account; everyone else only their own."""
        if caller.role != Role.ADMIN.value and caller.user_id != user_id:
            raise ForbiddenError()
        return UserResponse.model_validate(self._get_or_404(user_id))

    def update_user(
        self,
        user_id: int,
        email: str,
        password: str,
        caller: CurrentUser,
    ) -> UserResponse:
        _require_owner(user_id, caller)
        user = self._get_or_404(user_id)
        if email != user.email:
            existing = self._users.find_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ConflictError()
        user.email = email
        user.password = hash_password(password, rounds=self._settings.BCRYPT_ROUNDS)
        user.updated_at = datetime.now(UTC)
        user = self._users.save(user)
        logger.info("Updated user: id=%s", user.id)
        return UserResponse.model_validate(user)

    def delete_user(self, user_id: int, caller: CurrentUser) -> MessageResponse:
        """Hard-delete the caller's account, then publish the deleted event."""
        _require_owner(user_id, caller)
        user = self._get_or_404(user_id)
        event = user_event(user, is_active=False)
        self._users.delete(user)
        self._publisher.emit(self._settings.USER_DELETED_TOPIC, key=str(user_id), value=event)
        return MessageResponse(message="User deleted successfully")

    def _get_or_404(self, user_id: int) -> User:
        user = self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError()
        return user


def _require_owner(user_id: int, caller: CurrentUser) -> None:
    if caller.user_id != user_id:
        raise ForbiddenError("You can only modify your own account.")
