"""Credential store: SQLAlchemy persistence for User records."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError
from app.models import Role, User

logger = logging.getLogger(__name__)

# users.id is a 32-bit INTEGER on Postgres; larger ids cannot exist.
MAX_USER_ID = 2**31 - 1


class UserRepository:
    """Find, create, save and delete users. Every write commits."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self._session.execute(stmt).scalar_one_or_none()

    def find_by_id(self, user_id: int) -> User | None:
        if not 1 <= user_id <= MAX_USER_ID:
            return None
        return self._session.get(User, user_id)

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def create(
        self,
        email: str,
        password_hash: str,
        now: datetime,
        role: Role = Role.USER,
    ) -> User:
        """Insert a new user; a concurrent insert of the same email raises ConflictError."""
        user = User(
            email=email,
            password=password_hash,
            role=role.value,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self._session.add(user)
        self._commit()
        self._session.refresh(user)
        logger.info("Created user: id=%s", user.id)
        return user

    def save(self, user: User) -> User:
        self._session.add(user)
        self._commit()
        self._session.refresh(user)
        logger.debug("Saved user: id=%s", user.id)
        return user

    def delete(self, user: User) -> None:
        user_id = user.id
        self._session.delete(user)
        self._session.commit()
        logger.info("Deleted user: id=%s", user_id)

    def _commit(self) -> None:
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            # Unique index on users.email is the only constraint a client can trip.
            if "unique" in str(e).lower() or "email" in str(e).lower():
                raise ConflictError() from e
            raise
