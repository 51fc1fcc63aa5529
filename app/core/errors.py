"""Domain errors raised by services and guards; mapped to HTTP status codes in app.api.errors."""


class ServiceError(Exception):
    """Base class for account service failures surfaced to the client."""

    default_message = "Request failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(ServiceError):
    """Bad credentials, missing/invalid/expired token, or unknown token subject."""

    default_message = "Unauthorized"


class ForbiddenError(ServiceError):
    """Authenticated caller lacks the role or ownership for the resource."""

    default_message = "You do not have permission to access this resource."


class ConflictError(ServiceError):
    """Email address already belongs to another account."""

    default_message = "Provided email address cannot be used."


class NotFoundError(ServiceError):
    """Target user does not exist."""

    default_message = "User not found"
