"""Domain errors raised by the services and rendered by the API layer."""
from __future__ import annotations


class ApiError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"status": "error", "message": self.message}


class NotFoundError(ApiError):
    """Referenced group, fixture or member does not exist."""

    status_code = 404


class ForbiddenError(ApiError):
    """Caller lacks the membership or role to act on the target."""

    status_code = 403


class BadRequestError(ApiError):
    """Malformed input or a business rule that stops the whole operation."""

    status_code = 400


class ConflictError(ApiError):
    """A store uniqueness violation surfaced as a domain concept."""

    status_code = 409
