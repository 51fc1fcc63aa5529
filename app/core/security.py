"""Password hashing and JWT creation/verification for access and refresh tokens."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import Settings

# Bcrypt cost (rounds) used when no setting is supplied.
BCRYPT_ROUNDS = 10

# Password length bounds (after trimming).
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 50

# bcrypt only reads the first 72 bytes of its input.
PASSWORD_MAX_BYTES = 72

# Claims every token must carry besides the ones PyJWT validates.
REQUIRED_CLAIMS = ["exp", "iat", "sub"]


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hash a plain-text password for storage. Do not store plain passwords.
    Raises ValueError when the UTF-8 encoding is longer than PASSWORD_MAX_BYTES.
    """
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes never match."""
    pw_bytes = plain_password.encode("utf-8")
    if len(pw_bytes) > PASSWORD_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


def build_claims(user_id: int, email: str, role: str) -> dict[str, Any]:
    """Claims shared by access and refresh tokens. sub is a string per RFC 7519."""
    return {"sub": str(user_id), "email": email, "role": role}


def encode_token(
    claims: dict[str, Any],
    secret: str,
    expires_in: timedelta,
    algorithm: str = "HS256",
) -> str:
    """Sign claims with secret; adds iat and exp."""
    now = datetime.now(UTC)
    payload = {**claims, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Decode and validate a JWT signed with secret; return its claims.
    Raises jwt.InvalidSignatureError for a foreign secret, jwt.ExpiredSignatureError
    once expired, and other jwt.PyJWTError subclasses for malformed tokens.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": REQUIRED_CLAIMS},
    )


def create_access_token(claims: dict[str, Any], settings: Settings) -> str:
    """Short-lived token signed with JWT_SECRET."""
    return encode_token(
        claims,
        settings.JWT_SECRET.get_secret_value(),
        settings.access_token_ttl,
        settings.JWT_ALGORITHM,
    )


def create_refresh_token(claims: dict[str, Any], settings: Settings) -> str:
    """Long-lived token signed with REFRESH_TOKEN_SECRET."""
    return encode_token(
        claims,
        settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        settings.refresh_token_ttl,
        settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    return decode_token(token, settings.JWT_SECRET.get_secret_value(), settings.JWT_ALGORITHM)


def decode_refresh_token(token: str, settings: Settings) -> dict[str, Any]:
    return decode_token(
        token, settings.REFRESH_TOKEN_SECRET.get_secret_value(), settings.JWT_ALGORITHM
    )
