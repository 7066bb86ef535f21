"""CourseMaster API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from coursemaster.assignments.router import admin_router as assignments_admin_router
from coursemaster.assignments.router import router as assignments_router
from coursemaster.assignments.service import AssignmentService
from coursemaster.config import get_settings
from coursemaster.core.database import init_async_cassandra, shutdown_async_cassandra
from coursemaster.core.handlers import register_exception_handlers
from coursemaster.core.logging import configure_structlog, get_logger
from coursemaster.core.middleware import RequestContextMiddleware
from coursemaster.core.redis import init_redis, shutdown_redis
from coursemaster.courses.router import router as courses_router
from coursemaster.courses.service import CourseService
from coursemaster.health.router import router as health_router
from coursemaster.progress.router import admin_router as enrollments_admin_router
from coursemaster.progress.router import router as enrollments_router
from coursemaster.progress.service import ProgressService
from coursemaster.quizzes.router import admin_router as quizzes_admin_router
from coursemaster.quizzes.router import router as quizzes_router
from coursemaster.quizzes.service import QuizService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    course_service: CourseService | None = None
    progress_service: ProgressService | None = None
    quiz_service: QuizService | None = None
    assignment_service: AssignmentService | None = None


app_state = AppState()


def get_course_service() -> CourseService:
    """Get CourseService instance from app state."""
    if app_state.course_service is None:
        msg = "CourseService not initialized"
        raise RuntimeError(msg)
    return app_state.course_service


def get_progress_service() -> ProgressService:
    """Get ProgressService instance from app state."""
    if app_state.progress_service is None:
        msg = "ProgressService not initialized"
        raise RuntimeError(msg)
    return app_state.progress_service


def get_quiz_service() -> QuizService:
    """Get QuizService instance from app state."""
    if app_state.quiz_service is None:
        msg = "QuizService not initialized"
        raise RuntimeError(msg)
    return app_state.quiz_service


def get_assignment_service() -> AssignmentService:
    """Get AssignmentService instance from app state."""
    if app_state.assignment_service is None:
        msg = "AssignmentService not initialized"
        raise RuntimeError(msg)
    return app_state.assignment_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - courses are read from Cassandra without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - course cache disabled",
        )

    # Initialize Cassandra (async)
    try:
        app_state.cassandra_session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        app_state.course_service = CourseService(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
            redis=redis_client,
            cache_ttl_seconds=settings.course_cache_ttl_seconds,
        )
        logger.info("course_service_initialized", cache_enabled=redis_client is not None)

        app_state.progress_service = ProgressService(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
            course_service=app_state.course_service,
            max_write_attempts=settings.progress_max_write_attempts,
        )
        logger.info("progress_service_initialized")

        app_state.quiz_service = QuizService(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
            course_service=app_state.course_service,
            progress_service=app_state.progress_service,
        )
        logger.info("quiz_service_initialized")

        app_state.assignment_service = AssignmentService(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
            course_service=app_state.course_service,
            progress_service=app_state.progress_service,
        )
        logger.info("assignment_service_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette from rendering tracebacks; the registered
    # handlers log details and return the error envelope instead.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="CourseMaster - Learning Management API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(enrollments_router)
    app.include_router(enrollments_admin_router)
    app.include_router(quizzes_router)
    app.include_router(quizzes_admin_router)
    app.include_router(assignments_router)
    app.include_router(assignments_admin_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "CourseMaster API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


# Configure router dependencies before creating app
from coursemaster.assignments.dependencies import (  # noqa: E402
    set_assignment_service_getter,
)
from coursemaster.courses.dependencies import set_course_service_getter  # noqa: E402
from coursemaster.progress.dependencies import (  # noqa: E402
    set_progress_service_getter,
)
from coursemaster.quizzes.dependencies import set_quiz_service_getter  # noqa: E402


set_course_service_getter(get_course_service)
set_progress_service_getter(get_progress_service)
set_quiz_service_getter(get_quiz_service)
set_assignment_service_getter(get_assignment_service)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coursemaster.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
