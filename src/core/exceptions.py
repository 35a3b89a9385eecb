"""
Exception taxonomy shared by all layers.

Each error knows its own `kind` and default HTTP status, so the API layer can render any of them
as a structured `{"error": kind, "message": ...}` response without a lookup table.
"""

from typing import Optional


class ShootoutError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ShootoutError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(ShootoutError):
    kind = "forbidden"
    status_code = 403


class ConflictError(ShootoutError):
    kind = "conflict"
    status_code = 409


class InvalidRequestError(ShootoutError):
    kind = "validation"
    status_code = 400


class UnavailableError(ShootoutError):
    kind = "unavailable"
    status_code = 503


class CorruptRecordError(UnavailableError):
    kind = "corrupt_record"
    status_code = 500
