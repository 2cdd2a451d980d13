from __future__ import annotations


class RoomcastError(Exception):
    """Base for failures that map onto an HTTP status and a client-facing message."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RoomcastError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(RoomcastError):
    status_code = 404
    default_message = "Not found"


class Unauthorized(RoomcastError):
    status_code = 401
    default_message = "Unauthorized"


class PersistenceError(RoomcastError):
    status_code = 500
    default_message = "Server error"
