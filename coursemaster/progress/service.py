"""Enrollment and lesson progress service layer.

Business logic for:
- Course enrollment (one per student and course)
- Lesson completion with full-rescan aggregate recomputation
- Progress queries for students and admins

Every progress write is conditional on the version that was read. A lost
race re-reads the enrollment and recomputes from scratch; nothing is
written until the in-memory recomputation is complete.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.config import get_settings
from coursemaster.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)

from .models import Enrollment
from .schemas import EnrollmentStats, EnrollmentStatusFilter


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.courses.service import CourseService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EnrollmentNotFoundError(NotFoundError):
    """Enrollment not found."""

    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message, "enrollment_not_found")


class EnrollmentOwnershipError(UnauthorizedError):
    """Enrollment belongs to another student."""

    def __init__(self, message: str = "Not authorized to access this enrollment"):
        super().__init__(message, "enrollment_not_owned")


class NotEnrolledError(ForbiddenError):
    """Student not enrolled in course."""

    def __init__(self, message: str = "You are not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class AlreadyEnrolledError(ConflictError):
    """Student already enrolled."""

    def __init__(self, message: str = "Already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class ProgressConflictError(ConflictError):
    """Concurrent progress writes kept winning the race."""

    def __init__(
        self, message: str = "Progress was updated concurrently, please retry"
    ):
        super().__init__(message, "progress_conflict")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for enrollments and lesson completion."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        max_write_attempts: int | None = None,
    ):
        """Initialize with Cassandra session and the course catalog."""
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.max_write_attempts = (
            max_write_attempts
            if max_write_attempts is not None
            else get_settings().progress_max_write_attempts
        )
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Enrollments
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments WHERE id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (id, student_id, course_id, enrolled_at, progress, completed_lessons,
             total_lessons, overall_progress, is_completed, completed_at,
             updated_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._update_progress = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET progress = ?, completed_lessons = ?, total_lessons = ?,
                overall_progress = ?, is_completed = ?, completed_at = ?,
                updated_at = ?, version = ?
            WHERE id = ?
            IF version = ?
        """)

        # Enrollments by student (uniqueness + listing)
        self._claim_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_student
            (student_id, course_id, enrollment_id, enrolled_at)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._release_enrollment_claim = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.enrollments_by_student
            WHERE student_id = ? AND course_id = ?
            IF enrollment_id = ?
        """)

        self._get_student_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_student
            WHERE student_id = ? AND course_id = ?
        """)

        self._get_student_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_student
            WHERE student_id = ?
        """)

        # Enrollments by course (admin listing)
        self._insert_enrollment_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments_by_course
            (course_id, student_id, enrollment_id, enrolled_at)
            VALUES (?, ?, ?, ?)
        """)

        self._get_course_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_course
            WHERE course_id = ?
        """)

    # ==========================================================================
    # Enrollment Operations
    # ==========================================================================

    async def enroll(self, student_id: UUID, course_id: UUID) -> Enrollment:
        """Enroll a student in a course.

        Progress starts empty and ``total_lessons`` is copied from the course.

        Raises:
            CourseNotFoundError: If the course does not exist
            AlreadyEnrolledError: If the student is already enrolled
        """
        course = await self.course_service.require_course(course_id)

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            total_lessons=course.total_lessons,
        )

        result = await self.session.aexecute(
            self._claim_enrollment,
            [student_id, course_id, enrollment.id, enrollment.enrolled_at],
        )
        if not result.was_applied:
            raise AlreadyEnrolledError

        try:
            await self._save_enrollment(enrollment)
        except Exception:
            await self.session.aexecute(
                self._release_enrollment_claim,
                [student_id, course_id, enrollment.id],
            )
            logger.warning(
                "enrollment_claim_released",
                enrollment_id=str(enrollment.id),
                student_id=str(student_id),
                course_id=str(course_id),
            )
            raise

        logger.info(
            "student_enrolled",
            enrollment_id=str(enrollment.id),
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return enrollment

    async def _save_enrollment(self, enrollment: Enrollment) -> None:
        await self.session.aexecute(
            self._insert_enrollment,
            [
                enrollment.id,
                enrollment.student_id,
                enrollment.course_id,
                enrollment.enrolled_at,
                enrollment.progress_json(),
                enrollment.completed_lessons,
                enrollment.total_lessons,
                enrollment.overall_progress,
                enrollment.is_completed,
                enrollment.completed_at,
                enrollment.updated_at,
                enrollment.version,
            ],
        )
        await self.session.aexecute(
            self._insert_enrollment_by_course,
            [
                enrollment.course_id,
                enrollment.student_id,
                enrollment.id,
                enrollment.enrolled_at,
            ],
        )

    async def get_enrollment(self, enrollment_id: UUID) -> Enrollment | None:
        """Get enrollment by id."""
        result = await self.session.aexecute(self._get_enrollment, [enrollment_id])
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def get_enrollment_for_student(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment | None:
        """Get a student's enrollment in a course."""
        result = await self.session.aexecute(
            self._get_student_enrollment, [student_id, course_id]
        )
        row = result.one()
        if not row:
            return None
        return await self.get_enrollment(row.enrollment_id)

    async def require_enrollment(
        self, student_id: UUID, course_id: UUID
    ) -> Enrollment:
        """Get a student's enrollment or raise NotEnrolledError."""
        enrollment = await self.get_enrollment_for_student(student_id, course_id)
        if enrollment is None:
            raise NotEnrolledError
        return enrollment

    async def list_student_enrollments(self, student_id: UUID) -> list[Enrollment]:
        """Get all enrollments for a student, newest first."""
        rows = await self.session.aexecute(self._get_student_enrollments, [student_id])
        enrollments = await self._load_enrollments(row.enrollment_id for row in rows)
        return sorted(enrollments, key=lambda e: e.enrolled_at, reverse=True)

    async def list_course_enrollments(
        self,
        course_id: UUID,
        status: EnrollmentStatusFilter = EnrollmentStatusFilter.ALL,
    ) -> tuple[list[Enrollment], EnrollmentStats]:
        """Get a course's enrollments with counts (admin).

        Counts always cover every enrollment of the course; ``status`` only
        filters the returned items.
        """
        rows = await self.session.aexecute(self._get_course_enrollments, [course_id])
        enrollments = await self._load_enrollments(row.enrollment_id for row in rows)
        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)

        completed = sum(1 for e in enrollments if e.is_completed)
        stats = EnrollmentStats(
            total=len(enrollments),
            active=len(enrollments) - completed,
            completed=completed,
        )

        if status == EnrollmentStatusFilter.ACTIVE:
            enrollments = [e for e in enrollments if not e.is_completed]
        elif status == EnrollmentStatusFilter.COMPLETED:
            enrollments = [e for e in enrollments if e.is_completed]

        return enrollments, stats

    async def _load_enrollments(self, enrollment_ids) -> list[Enrollment]:
        enrollments = []
        for enrollment_id in enrollment_ids:
            enrollment = await self.get_enrollment(enrollment_id)
            if enrollment is not None:
                enrollments.append(enrollment)
        return enrollments

    # ==========================================================================
    # Progress Operations
    # ==========================================================================

    async def get_progress(self, student_id: UUID, enrollment_id: UUID) -> Enrollment:
        """Get the full progress document of an enrollment owned by the student.

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist
            EnrollmentOwnershipError: If it belongs to another student
        """
        return await self._get_owned_enrollment(student_id, enrollment_id)

    async def record_lesson_completion(
        self,
        student_id: UUID,
        enrollment_id: UUID,
        module_id: UUID,
        lesson_id: UUID,
    ) -> tuple[Enrollment, bool]:
        """Record that a student completed a lesson.

        Completing an already completed lesson changes nothing and writes
        nothing.

        Returns:
            Tuple of (enrollment after the call, whether anything changed)

        Raises:
            EnrollmentNotFoundError: If the enrollment does not exist
            EnrollmentOwnershipError: If it belongs to another student
            CourseNotFoundError: If the enrolled course no longer exists
            ProgressConflictError: If every write attempt lost a race
        """
        for attempt in range(1, self.max_write_attempts + 1):
            enrollment = await self._get_owned_enrollment(student_id, enrollment_id)
            course = await self.course_service.require_course(enrollment.course_id)

            if enrollment.is_lesson_completed(module_id, lesson_id):
                return enrollment, False

            now = datetime.now(UTC)
            expected_version = enrollment.version

            enrollment.complete_lesson(module_id, lesson_id, now)
            course_completed = enrollment.recompute(
                total_lessons=course.total_lessons,
                module_lessons=course.lessons_by_module(),
                now=now,
            )

            if await self._write_progress(enrollment, expected_version, now):
                logger.info(
                    "lesson_completed",
                    enrollment_id=str(enrollment.id),
                    lesson_id=str(lesson_id),
                    completed_lessons=enrollment.completed_lessons,
                    overall_progress=enrollment.overall_progress,
                )
                if course_completed:
                    logger.info(
                        "course_completed",
                        enrollment_id=str(enrollment.id),
                        course_id=str(enrollment.course_id),
                    )
                return enrollment, True

            logger.warning(
                "progress_write_conflict",
                enrollment_id=str(enrollment_id),
                attempt=attempt,
                max_attempts=self.max_write_attempts,
            )

        raise ProgressConflictError

    async def _get_owned_enrollment(
        self, student_id: UUID, enrollment_id: UUID
    ) -> Enrollment:
        enrollment = await self.get_enrollment(enrollment_id)
        if enrollment is None:
            raise EnrollmentNotFoundError
        if enrollment.student_id != student_id:
            raise EnrollmentOwnershipError
        return enrollment

    async def _write_progress(
        self, enrollment: Enrollment, expected_version: int, now: datetime
    ) -> bool:
        """Persist the whole progress document if nobody wrote in between."""
        result = await self.session.aexecute(
            self._update_progress,
            [
                enrollment.progress_json(),
                enrollment.completed_lessons,
                enrollment.total_lessons,
                enrollment.overall_progress,
                enrollment.is_completed,
                enrollment.completed_at,
                now,
                expected_version + 1,
                enrollment.id,
                expected_version,
            ],
        )
        if not result.was_applied:
            return False

        enrollment.version = expected_version + 1
        enrollment.updated_at = now
        return True
