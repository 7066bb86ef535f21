# Core infrastructure
from coursemaster.core.context import (
    clear_context,
    get_context,
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from coursemaster.core.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    to_http_exception,
)
from coursemaster.core.logging import configure_structlog, get_logger
from coursemaster.core.middleware import RequestContextMiddleware


__all__ = [
    "AppError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "RequestContextMiddleware",
    "UnauthorizedError",
    "ValidationError",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "set_request_id",
    "set_user_id",
    "to_http_exception",
]
