"""Quiz attempt service layer.

Business logic for:
- Grading and storing quiz attempts
- Listing attempts for students and admins
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.courses.service import QuizNotFoundError

from .grading import SubmittedAnswer, grade_quiz, time_spent_seconds
from .models import QuizAttempt


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.courses.service import CourseService
    from coursemaster.progress.service import ProgressService

logger = structlog.get_logger(__name__)


class QuizService:
    """Service for quiz attempts."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        progress_service: "ProgressService",
    ):
        """Initialize with Cassandra session and collaborating services."""
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.progress_service = progress_service
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        columns = """
            (id, student_id, course_id, quiz_id, module_id, answers, score,
             max_score, percentage, passed, passing_score, started_at, completed_at,
             time_spent)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        self._insert_attempt_by_student = self.session.prepare(
            f"INSERT INTO {self.keyspace}.quiz_attempts_by_student {columns}"
        )
        self._insert_attempt_by_course = self.session.prepare(
            f"INSERT INTO {self.keyspace}.quiz_attempts_by_course {columns}"
        )
        self._get_student_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts_by_student
            WHERE student_id = ?
        """)
        self._get_course_attempts = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.quiz_attempts_by_course
            WHERE course_id = ?
        """)

    async def submit_quiz_attempt(
        self,
        student_id: UUID,
        course_id: UUID,
        quiz_id: UUID,
        answers: Iterable[SubmittedAnswer],
        started_at: datetime,
        module_id: UUID | None = None,
    ) -> QuizAttempt:
        """Grade a submission and store it as a new attempt.

        Raises:
            NotEnrolledError: If the student is not enrolled in the course
            CourseNotFoundError: If the course does not exist
            QuizNotFoundError: If the course has no such quiz
        """
        await self.progress_service.require_enrollment(student_id, course_id)

        course = await self.course_service.require_course(course_id)
        quiz = course.find_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFoundError

        result = grade_quiz(quiz, answers)
        completed_at = datetime.now(UTC)

        attempt = QuizAttempt(
            student_id=student_id,
            course_id=course_id,
            quiz_id=quiz_id,
            module_id=module_id,
            answers=result.answers,
            score=result.score,
            max_score=result.max_score,
            percentage=result.percentage,
            passed=result.passed,
            passing_score=result.passing_score,
            started_at=started_at,
            completed_at=completed_at,
            time_spent=time_spent_seconds(started_at, completed_at),
        )
        await self._save_attempt(attempt)

        logger.info(
            "quiz_attempt_graded",
            attempt_id=str(attempt.id),
            quiz_id=str(quiz_id),
            score=attempt.score,
            max_score=attempt.max_score,
            passed=attempt.passed,
        )
        return attempt

    async def _save_attempt(self, attempt: QuizAttempt) -> None:
        """Write the attempt to both listing tables."""
        values = [
            attempt.id,
            attempt.student_id,
            attempt.course_id,
            attempt.quiz_id,
            attempt.module_id,
            attempt.answers_json(),
            attempt.score,
            attempt.max_score,
            attempt.percentage,
            attempt.passed,
            attempt.passing_score,
            attempt.started_at,
            attempt.completed_at,
            attempt.time_spent,
        ]
        await self.session.aexecute(self._insert_attempt_by_student, values)
        await self.session.aexecute(self._insert_attempt_by_course, values)

    async def list_student_attempts(
        self,
        student_id: UUID,
        course_id: UUID | None = None,
        quiz_id: UUID | None = None,
    ) -> list[QuizAttempt]:
        """Get a student's attempts, newest first."""
        rows = await self.session.aexecute(self._get_student_attempts, [student_id])
        attempts = [QuizAttempt.from_row(row) for row in rows]
        if course_id is not None:
            attempts = [a for a in attempts if a.course_id == course_id]
        if quiz_id is not None:
            attempts = [a for a in attempts if a.quiz_id == quiz_id]
        return attempts

    async def list_course_attempts(
        self, course_id: UUID, passed: bool | None = None
    ) -> list[QuizAttempt]:
        """Get every attempt for a course, newest first (admin)."""
        rows = await self.session.aexecute(self._get_course_attempts, [course_id])
        attempts = [QuizAttempt.from_row(row) for row in rows]
        if passed is not None:
            attempts = [a for a in attempts if a.passed == passed]
        return attempts
