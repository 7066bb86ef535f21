"""FastAPI dependencies for assignment submissions."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException

from coursemaster.core.exceptions import AppError, to_http_exception

from .service import AssignmentService


_assignment_service_getter: Callable[[], AssignmentService] | None = None


def set_assignment_service_getter(getter: Callable[[], AssignmentService]) -> None:
    """Set the assignment service getter function."""
    global _assignment_service_getter
    _assignment_service_getter = getter


def get_assignment_service() -> AssignmentService:
    """Get AssignmentService instance from app state."""
    if _assignment_service_getter is None:
        msg = "AssignmentService not configured"
        raise RuntimeError(msg)
    return _assignment_service_getter()


AssignmentServiceDep = Annotated[AssignmentService, Depends(get_assignment_service)]


def handle_assignment_error(error: AppError) -> HTTPException:
    """Convert assignment errors to HTTP exceptions."""
    return to_http_exception(error)
