"""Domain errors raised by the service layer.

Each error carries the HTTP status it maps to; ``main.py`` installs a handler that
renders them the same way FastAPI renders ``HTTPException``.
"""

from fastapi import status


class CineCriticError(Exception):
    """Base error."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInput(CineCriticError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(CineCriticError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Forbidden(CineCriticError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(CineCriticError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(CineCriticError):
    """The review was changed by another request between read and write."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Review was modified concurrently, please retry"):
        super().__init__(message)
