"""Domain error taxonomy shared by every feature module.

Services raise these; routers turn them into HTTP responses through
``to_http_exception``. Feature modules subclass them with their own
default messages and codes (``EnrollmentNotFoundError``, ``NotEnrolledError``...).
"""

from fastapi import HTTPException, status


class AppError(Exception):
    """Base application error."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str = "app_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthorizedError(AppError):
    """Missing or invalid identity, or acting on someone else's record."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized"):
        super().__init__(message, code)


class ForbiddenError(AppError):
    """Identity is valid but lacks rights."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Forbidden", code: str = "forbidden"):
        super().__init__(message, code)


class NotFoundError(AppError):
    """Referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found", code: str = "not_found"):
        super().__init__(message, code)


class ConflictError(AppError):
    """Write lost a race or would violate a uniqueness rule."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Conflict", code: str = "conflict"):
        super().__init__(message, code)


class ValidationError(AppError):
    """Input is well-formed but violates a business rule."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Invalid input", code: str = "validation_error"):
        super().__init__(message, code)


def to_http_exception(error: AppError) -> HTTPException:
    """Convert a domain error to an HTTPException."""
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if error.status_code == status.HTTP_401_UNAUTHORIZED
        else None
    )
    return HTTPException(
        status_code=error.status_code,
        detail=error.message,
        headers=headers,
    )
