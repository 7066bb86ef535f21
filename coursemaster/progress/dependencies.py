"""FastAPI dependencies for enrollments and progress.

Provides dependency injection for:
- Progress service
- Error handlers
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException

from coursemaster.core.exceptions import AppError, to_http_exception

from .service import ProgressService


_progress_service_getter: Callable[[], ProgressService] | None = None


def set_progress_service_getter(getter: Callable[[], ProgressService]) -> None:
    """Set the progress service getter function."""
    global _progress_service_getter
    _progress_service_getter = getter


def get_progress_service() -> ProgressService:
    """Get ProgressService instance from app state."""
    if _progress_service_getter is None:
        msg = "ProgressService not configured"
        raise RuntimeError(msg)
    return _progress_service_getter()


# Type alias for dependency injection
ProgressServiceDep = Annotated[ProgressService, Depends(get_progress_service)]


def handle_progress_error(error: AppError) -> HTTPException:
    """Convert progress errors to HTTP exceptions.

    Args:
        error: Domain error raised by the progress or course service

    Returns:
        HTTPException with the error's status code
    """
    return to_http_exception(error)
