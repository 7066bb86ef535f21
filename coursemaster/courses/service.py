"""Course catalog service layer.

Business logic for:
- Course creation and full-content replacement (totals recomputed on save)
- Course lookup with a Redis read-through cache
- Published catalog listing
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from redis.exceptions import RedisError

from coursemaster.config import get_settings
from coursemaster.core.exceptions import NotFoundError
from coursemaster.core.redis import course_cache_key
from coursemaster.courses.models import Course, CourseStatus, CourseSummary
from coursemaster.courses.schemas import CourseContentRequest


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseNotFoundError(NotFoundError):
    """Course not found."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class QuizNotFoundError(NotFoundError):
    """Quiz not found in course."""

    def __init__(self, message: str = "Quiz not found"):
        super().__init__(message, "quiz_not_found")


class AssignmentNotFoundError(NotFoundError):
    """Assignment not found in course."""

    def __init__(self, message: str = "Assignment not found"):
        super().__init__(message, "assignment_not_found")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Service for the course catalog."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        cache_ttl_seconds: int | None = None,
    ):
        """Initialize with Cassandra session and optional Redis cache."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.cache_ttl_seconds = (
            cache_ttl_seconds
            if cache_ttl_seconds is not None
            else get_settings().course_cache_ttl_seconds
        )
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._get_course_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.courses WHERE id = ?"
        )
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, slug, description, thumbnail_url, price, is_published,
             instructor_id, content, total_lessons, total_duration,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        # Listing table
        self._insert_course_by_status = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_status
            (status, created_at, course_id, title, slug, description,
             thumbnail_url, price, instructor_id, total_lessons, total_duration)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_course_by_status = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.courses_by_status
            WHERE status = ? AND created_at = ? AND course_id = ?
        """)
        self._list_courses_by_status = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses_by_status
            WHERE status = ?
        """)

    # ==========================================================================
    # Write Operations
    # ==========================================================================

    async def create_course(
        self, data: CourseContentRequest, instructor_id: UUID
    ) -> Course:
        """Create a course with its full content.

        Ids missing from modules, lessons, quizzes, questions and assignments
        are generated here.
        """
        course = Course(
            title=data.title,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            price=data.price,
            is_published=data.is_published,
            instructor_id=instructor_id,
            modules=[m.to_entity() for m in data.modules],
            quizzes=[q.to_entity() for q in data.quizzes],
            assignments=[a.to_entity() for a in data.assignments],
        )
        await self._save(course)

        logger.info(
            "course_created",
            course_id=str(course.id),
            total_lessons=course.total_lessons,
            is_published=course.is_published,
        )
        return course

    async def update_course(
        self, course_id: UUID, data: CourseContentRequest
    ) -> Course:
        """Replace a course's metadata and content.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        course = await self._load_course(course_id)
        if course is None:
            raise CourseNotFoundError

        previous_status = course.status

        course.title = data.title.strip()
        course.description = data.description
        course.thumbnail_url = data.thumbnail_url
        course.price = data.price
        course.is_published = data.is_published
        course.modules = [m.to_entity() for m in data.modules]
        course.quizzes = [q.to_entity() for q in data.quizzes]
        course.assignments = [a.to_entity() for a in data.assignments]
        course.updated_at = datetime.now(UTC)

        await self.session.aexecute(
            self._delete_course_by_status,
            [previous_status, course.created_at, course.id],
        )
        await self._save(course)
        await self._invalidate_cache(course.id)

        logger.info(
            "course_updated",
            course_id=str(course.id),
            total_lessons=course.total_lessons,
            is_published=course.is_published,
        )
        return course

    async def _save(self, course: Course) -> None:
        """Recompute totals and write the course to both tables."""
        course.recompute_totals()

        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.slug,
                course.description,
                course.thumbnail_url,
                course.price,
                course.is_published,
                course.instructor_id,
                course.content_json(),
                course.total_lessons,
                course.total_duration,
                course.created_at,
                course.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_course_by_status,
            [
                course.status,
                course.created_at,
                course.id,
                course.title,
                course.slug,
                course.description,
                course.thumbnail_url,
                course.price,
                course.instructor_id,
                course.total_lessons,
                course.total_duration,
            ],
        )

    # ==========================================================================
    # Read Operations
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get a course, serving from the cache when possible."""
        cached = await self._get_cached_course(course_id)
        if cached is not None:
            return cached

        course = await self._load_course(course_id)
        if course is not None:
            await self._cache_course(course)
        return course

    async def require_course(self, course_id: UUID) -> Course:
        """Get a course or raise CourseNotFoundError."""
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def list_published_courses(self) -> list[CourseSummary]:
        """List published courses, newest first."""
        rows = await self.session.aexecute(
            self._list_courses_by_status, [CourseStatus.PUBLISHED]
        )
        return [CourseSummary.from_row(row) for row in rows]

    async def _load_course(self, course_id: UUID) -> Course | None:
        result = await self.session.aexecute(self._get_course_by_id, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    # ==========================================================================
    # Cache Management
    # ==========================================================================

    async def _get_cached_course(self, course_id: UUID) -> Course | None:
        if not self.redis:
            return None

        try:
            cached = await self.redis.get(course_cache_key(str(course_id)))
        except RedisError as e:
            logger.warning("course_cache_read_failed", error=str(e))
            return None

        return Course.from_cache(cached) if cached else None

    async def _cache_course(self, course: Course) -> None:
        if not self.redis:
            return

        try:
            await self.redis.setex(
                course_cache_key(str(course.id)),
                self.cache_ttl_seconds,
                course.to_cache(),
            )
        except RedisError as e:
            logger.warning("course_cache_write_failed", error=str(e))

    async def _invalidate_cache(self, course_id: UUID) -> None:
        if not self.redis:
            return

        try:
            await self.redis.delete(course_cache_key(str(course_id)))
        except RedisError as e:
            logger.warning("course_cache_invalidate_failed", error=str(e))
