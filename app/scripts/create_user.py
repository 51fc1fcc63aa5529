"""
Create an account (the only way to create an ADMIN). Run from project root:
  python -m app.scripts.create_user EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password ADMIN
"""
import argparse
import sys
from datetime import UTC, datetime

from pydantic import ValidationError

from app.core.config import get_settings
from app.core.database import SessionLocal, init_db
from app.core.errors import ConflictError
from app.core.logging_config import configure_logging
from app.core.security import hash_password
from app.models import Role
from app.repositories import UserRepository
from app.schemas.auth import SignUpRequest
from app.services.events import build_publisher, user_event


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a user account.")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (8-50 chars)")
    parser.add_argument(
        "role", nargs="?", default=Role.USER.value, choices=[r.value for r in Role]
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    try:
        body = SignUpRequest.model_validate(
            {"email": args.email, "password": args.password}
        )
    except ValidationError as e:
        for err in e.errors():
            print(f"Invalid {err['loc'][0]}: {err['msg']}", file=sys.stderr)
        return 1

    if settings.DB_SYNCHRONIZE:
        init_db()

    db = SessionLocal()
    publisher = build_publisher(settings)
    try:
        users = UserRepository(db)
        if users.exists_by_email(body.email):
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        try:
            user = users.create(
                body.email,
                hash_password(body.password, rounds=settings.BCRYPT_ROUNDS),
                now=datetime.now(UTC),
                role=Role(args.role),
            )
        except ConflictError:
            print(f"User '{body.email}' already exists.", file=sys.stderr)
            return 1
        publisher.emit(
            settings.USER_CREATED_TOPIC,
            key=str(user.id),
            value=user_event(user, is_active=True),
        )
        print(f"Created user '{user.email}' (id={user.id}) with role '{user.role}'.")
        return 0
    finally:
        publisher.close()
        db.close()


if __name__ == "__main__":
    sys.exit(main())
