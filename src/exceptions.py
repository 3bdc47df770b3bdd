"""Errors raised by the notification preference layer."""


class NotificationPreferenceError(Exception):
    """Base class for notification preference errors."""


class PreferenceValidationError(NotificationPreferenceError, ValueError):
    """Raised when a preference update or token registration is malformed.

    ``errors`` holds ``{"field": ..., "message": ...}`` dicts suitable for an
    API response body.
    """

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class InvalidArgumentError(PreferenceValidationError):
    """Raised when a caller passes an unknown channel or notification type."""


def validation_error_details(errors: list[dict]) -> list[dict]:
    """Flatten pydantic error dicts into ``{"field", "message"}`` pairs.

    The request-body prefix FastAPI adds to locations is dropped.
    """
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return details
