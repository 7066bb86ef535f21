"""FastAPI dependencies for quiz attempts."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException

from coursemaster.core.exceptions import AppError, to_http_exception

from .service import QuizService


_quiz_service_getter: Callable[[], QuizService] | None = None


def set_quiz_service_getter(getter: Callable[[], QuizService]) -> None:
    """Set the quiz service getter function."""
    global _quiz_service_getter
    _quiz_service_getter = getter


def get_quiz_service() -> QuizService:
    """Get QuizService instance from app state."""
    if _quiz_service_getter is None:
        msg = "QuizService not configured"
        raise RuntimeError(msg)
    return _quiz_service_getter()


QuizServiceDep = Annotated[QuizService, Depends(get_quiz_service)]


def handle_quiz_error(error: AppError) -> HTTPException:
    """Convert quiz errors to HTTP exceptions."""
    return to_http_exception(error)
