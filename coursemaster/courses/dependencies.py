"""FastAPI dependencies for the course catalog.

Provides dependency injection for:
- Course service instance
- Error conversion
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException

from coursemaster.core.exceptions import AppError, to_http_exception
from coursemaster.courses.service import CourseService


# ==============================================================================
# Service Getters (set by main.py)
# ==============================================================================

_course_service_getter: Callable[[], CourseService] | None = None


def set_course_service_getter(getter: Callable[[], CourseService]) -> None:
    """Set the course service getter function."""
    global _course_service_getter
    _course_service_getter = getter


def get_course_service() -> CourseService:
    """Get CourseService instance from app state."""
    if _course_service_getter is None:
        msg = "CourseService not configured"
        raise RuntimeError(msg)
    return _course_service_getter()


# ==============================================================================
# Type Aliases for Dependencies
# ==============================================================================

CourseServiceDep = Annotated[CourseService, Depends(get_course_service)]


def handle_course_error(error: AppError) -> HTTPException:
    """Convert course errors to HTTP exceptions."""
    return to_http_exception(error)
