"""Domain-level exceptions shared by the messaging, presence and notification core."""

from __future__ import annotations


class MessagingError(Exception):
    """Base class for messaging core errors."""

    reason: str = "unknown"
    status_code: int = 400

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason:
            self.reason = reason


class ValidationError(MessagingError):
    reason = "validation_error"
    status_code = 422


class Unauthorized(MessagingError):
    reason = "unauthorized"
    status_code = 401


class Forbidden(MessagingError):
    reason = "forbidden"
    status_code = 403


class NotFound(MessagingError):
    reason = "not_found"
    status_code = 404
