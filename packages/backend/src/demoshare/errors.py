"""Error taxonomy shared by every resource handler.

Each error carries a machine-readable ``kind`` and the HTTP status it maps
to. Services raise these; the exception handlers registered in main.py
turn them into ``{"detail": ..., "kind": ...}`` JSON bodies.
"""


class AppError(Exception):
    """Base class for errors surfaced to the caller as-is."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(AppError):
    """Malformed identifiers, missing fields, out-of-range values."""

    kind = "invalid_input"
    status_code = 400


class InvalidTarget(InvalidInput):
    """Not exactly one of project_id / track_id supplied."""

    kind = "invalid_target"


class InvalidContent(InvalidInput):
    kind = "invalid_content"


class InvalidIdentifier(InvalidInput):
    kind = "invalid_identifier"


class Unauthenticated(AppError):
    kind = "unauthenticated"
    status_code = 401


class Forbidden(AppError):
    kind = "forbidden"
    status_code = 403


class NotFound(AppError):
    """Absent, deleted, or not visible to this caller."""

    kind = "not_found"
    status_code = 404


class Conflict(AppError):
    """Duplicate unique key, e.g. a replayed payment reference."""

    kind = "conflict"
    status_code = 409


class Internal(AppError):
    """Unexpected datastore or provider failure."""


class RateLimited(AppError):
    kind = "rate_limited"
    status_code = 429
