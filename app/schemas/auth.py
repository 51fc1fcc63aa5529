"""Request/response schemas for auth endpoints."""

from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
)

from app.core.security import PASSWORD_MAX_BYTES, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes in UTF-8")
    return value


Password = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
    ),
    AfterValidator(_check_password_bytes),
]


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class EmailBody(BaseModel):
    """Base for bodies carrying an email; whitespace is trimmed before validation."""

    email: EmailStr = Field(..., description="Email address")

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        return _strip(v)


class CredentialsRequest(EmailBody):
    """Email and password for sign-in and sign-up."""

    password: Password = Field(..., description="Password (8-50 characters)")


class SignInRequest(CredentialsRequest):
    """Credentials for login."""


class SignUpRequest(CredentialsRequest):
    """Credentials for a new account."""


class RefreshTokenRequest(EmailBody):
    """Account to mint a new access token for."""


class AccessTokenResponse(BaseModel):
    """Fresh access token returned by /auth/refresh."""

    access_token: str = Field(..., description="JWT access token")


class TokenPairResponse(AccessTokenResponse):
    """Access and refresh tokens returned after login or signup."""

    refresh_token: str = Field(..., description="JWT refresh token")


class TokenPayload(BaseModel):
    """Decoded claims of an access or refresh token."""

    sub: int
    email: str
    role: str | None = None


class CurrentUser(BaseModel):
    """Authenticated identity attached by the access-token guard."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(
        ..., validation_alias=AliasChoices("user_id", "userId"), serialization_alias="userId"
    )
    email: str
    role: str


class RefreshIdentity(BaseModel):
    """Identity attached by the refresh-token guard (role is not re-checked)."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(
        ..., validation_alias=AliasChoices("user_id", "userId"), serialization_alias="userId"
    )
    email: str
