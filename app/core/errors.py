"""
Domain error taxonomy.

Services raise these; the application-level exception handler in ``main``
turns them into the standard error envelope with the matching status code.
"""

from typing import Any, Optional


class CampusEventsError(Exception):
    """Base class for every failure surfaced to a caller"""

    status_code: int = 400
    error_code: str = "error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class Unauthenticated(CampusEventsError):
    status_code = 401
    error_code = "unauthenticated"


class Forbidden(CampusEventsError):
    status_code = 403
    error_code = "forbidden"


class NotFound(CampusEventsError):
    status_code = 404
    error_code = "not_found"


class ValidationError(CampusEventsError):
    status_code = 400
    error_code = "validation_error"


class Conflict(CampusEventsError):
    status_code = 409
    error_code = "conflict"
