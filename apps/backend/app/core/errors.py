"""
Domain errors shared by the services.

Routers translate these into HTTP responses; `status_code` is the status the
error maps to when it escapes a route unhandled.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Caller-supplied event or request is structurally invalid."""

    status_code = 400


class NotFoundError(AppError):
    """Referenced tenant or session does not exist."""

    status_code = 404


class ForbiddenError(AppError):
    status_code = 403


class StorageError(AppError):
    """I/O failure while writing, reading or deleting a shard."""

    status_code = 500
