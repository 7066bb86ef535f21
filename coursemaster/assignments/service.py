"""Assignment submission service layer.

Business logic for:
- Submitting and resubmitting assignments (one submission per student and assignment)
- Grading by admins
- Listing submissions for students and admins
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.core.exceptions import ConflictError, NotFoundError, ValidationError
from coursemaster.courses.service import AssignmentNotFoundError

from .models import AssignmentSubmission, SubmissionStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemaster.courses.models import Assignment
    from coursemaster.courses.service import CourseService
    from coursemaster.progress.service import ProgressService

logger = structlog.get_logger(__name__)


class SubmissionNotFoundError(NotFoundError):
    """Submission not found."""

    def __init__(self, message: str = "Submission not found"):
        super().__init__(message, "submission_not_found")


class SubmissionInProgressError(ConflictError):
    """A first submission for the same assignment is still being written."""

    def __init__(self, message: str = "Submission is being created, please retry"):
        super().__init__(message, "submission_in_progress")


class AssignmentService:
    """Service for assignment submissions and their review."""

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
        self._insert_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.assignment_submissions
            (id, student_id, course_id, assignment_id, module_id, submission_type,
             content, submitted_at, status, grade, feedback, graded_at, graded_by)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._update_work = self.session.prepare(f"""
            UPDATE {self.keyspace}.assignment_submissions
            SET submission_type = ?, content = ?, submitted_at = ?, module_id = ?
            WHERE id = ?
        """)
        self._update_grade = self.session.prepare(f"""
            UPDATE {self.keyspace}.assignment_submissions
            SET status = ?, grade = ?, feedback = ?, graded_at = ?, graded_by = ?
            WHERE id = ?
        """)
        self._get_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.assignment_submissions WHERE id = ?
        """)
        self._claim_submission = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submissions_by_student
            (student_id, assignment_id, course_id, submission_id)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)
        self._release_submission_claim = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.submissions_by_student
            WHERE student_id = ? AND assignment_id = ?
            IF submission_id = ?
        """)
        self._get_student_submission = self.session.prepare(f"""
            SELECT submission_id FROM {self.keyspace}.submissions_by_student
            WHERE student_id = ? AND assignment_id = ?
        """)
        self._get_student_submissions = self.session.prepare(f"""
            SELECT submission_id, course_id FROM {self.keyspace}.submissions_by_student
            WHERE student_id = ?
        """)
        self._insert_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submissions_by_course
            (course_id, submission_id)
            VALUES (?, ?)
        """)
        self._get_course_submissions = self.session.prepare(f"""
            SELECT submission_id FROM {self.keyspace}.submissions_by_course
            WHERE course_id = ?
        """)

    # ==========================================================================
    # Submission
    # ==========================================================================

    async def upsert_submission(
        self,
        student_id: UUID,
        course_id: UUID,
        assignment_id: UUID,
        submission_type: str,
        content: str,
        module_id: UUID | None = None,
    ) -> tuple[AssignmentSubmission, bool]:
        """Create the student's submission, or overwrite it when one exists.

        Returns:
            Tuple of (submission, created)

        Raises:
            NotEnrolledError: If the student is not enrolled in the course
            CourseNotFoundError: If the course does not exist
            AssignmentNotFoundError: If the course has no such assignment
        """
        await self.progress_service.require_enrollment(student_id, course_id)
        await self._require_assignment(course_id, assignment_id)

        now = datetime.now(UTC)

        existing = await self._find_student_submission(student_id, assignment_id)
        if existing is None:
            submission = AssignmentSubmission(
                student_id=student_id,
                course_id=course_id,
                assignment_id=assignment_id,
                module_id=module_id,
                submission_type=submission_type,
                content=content,
                submitted_at=now,
            )
            claim = await self.session.aexecute(
                self._claim_submission,
                [student_id, assignment_id, course_id, submission.id],
            )
            if claim.was_applied:
                try:
                    await self._save(submission)
                except Exception:
                    await self.session.aexecute(
                        self._release_submission_claim,
                        [student_id, assignment_id, submission.id],
                    )
                    logger.warning(
                        "submission_claim_released",
                        submission_id=str(submission.id),
                        assignment_id=str(assignment_id),
                        student_id=str(student_id),
                    )
                    raise
                logger.info(
                    "assignment_submitted",
                    submission_id=str(submission.id),
                    assignment_id=str(assignment_id),
                    student_id=str(student_id),
                )
                return submission, True

            # Lost the race against a concurrent first submission
            existing = await self._find_student_submission(student_id, assignment_id)
            if existing is None:
                raise SubmissionInProgressError

        existing.resubmit(submission_type, content, now, module_id)
        await self.session.aexecute(
            self._update_work,
            [
                existing.submission_type,
                existing.content,
                existing.submitted_at,
                existing.module_id,
                existing.id,
            ],
        )

        logger.info(
            "assignment_resubmitted",
            submission_id=str(existing.id),
            assignment_id=str(assignment_id),
            status=existing.status,
        )
        return existing, False

    async def _save(self, submission: AssignmentSubmission) -> None:
        await self.session.aexecute(
            self._insert_submission,
            [
                submission.id,
                submission.student_id,
                submission.course_id,
                submission.assignment_id,
                submission.module_id,
                submission.submission_type,
                submission.content,
                submission.submitted_at,
                submission.status,
                submission.grade,
                submission.feedback,
                submission.graded_at,
                submission.graded_by,
            ],
        )
        await self.session.aexecute(
            self._insert_by_course, [submission.course_id, submission.id]
        )

    async def _require_assignment(
        self, course_id: UUID, assignment_id: UUID
    ) -> "Assignment":
        course = await self.course_service.require_course(course_id)
        assignment = course.find_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError
        return assignment

    async def _find_student_submission(
        self, student_id: UUID, assignment_id: UUID
    ) -> AssignmentSubmission | None:
        result = await self.session.aexecute(
            self._get_student_submission, [student_id, assignment_id]
        )
        row = result.one()
        if not row:
            return None
        return await self.get_submission(row.submission_id)

    # ==========================================================================
    # Review
    # ==========================================================================

    async def get_submission(self, submission_id: UUID) -> AssignmentSubmission | None:
        """Get submission by ID."""
        result = await self.session.aexecute(self._get_submission, [submission_id])
        row = result.one()
        if not row:
            return None
        return AssignmentSubmission.from_row(row)

    async def require_submission(self, submission_id: UUID) -> AssignmentSubmission:
        submission = await self.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFoundError
        return submission

    async def grade_submission(
        self,
        admin_id: UUID,
        submission_id: UUID,
        grade: int,
        feedback: str | None = None,
    ) -> AssignmentSubmission:
        """Grade (or re-grade) a submission.

        Raises:
            SubmissionNotFoundError: If the submission does not exist
            AssignmentNotFoundError: If the assignment was removed from the course
            ValidationError: If the grade is outside 0..max_score
        """
        submission = await self.require_submission(submission_id)
        assignment = await self._require_assignment(
            submission.course_id, submission.assignment_id
        )

        if not 0 <= grade <= assignment.max_score:
            msg = f"Grade must be between 0 and {assignment.max_score}"
            raise ValidationError(msg, "invalid_grade")

        submission.apply_grade(grade, feedback, admin_id, datetime.now(UTC))
        await self.session.aexecute(
            self._update_grade,
            [
                submission.status,
                submission.grade,
                submission.feedback,
                submission.graded_at,
                submission.graded_by,
                submission.id,
            ],
        )

        logger.info(
            "assignment_graded",
            submission_id=str(submission.id),
            grade=grade,
            max_score=assignment.max_score,
            graded_by=str(admin_id),
        )
        return submission

    # ==========================================================================
    # Listing
    # ==========================================================================

    async def list_student_submissions(
        self, student_id: UUID, course_id: UUID | None = None
    ) -> list[AssignmentSubmission]:
        """Get a student's submissions, most recently submitted first."""
        rows = await self.session.aexecute(
            self._get_student_submissions, [student_id]
        )
        ids = [
            row.submission_id
            for row in rows
            if course_id is None or row.course_id == course_id
        ]
        return await self._load_submissions(ids)

    async def list_course_submissions(
        self, course_id: UUID, status: SubmissionStatus | None = None
    ) -> list[AssignmentSubmission]:
        """Get every submission for a course, most recently submitted first (admin)."""
        rows = await self.session.aexecute(self._get_course_submissions, [course_id])
        submissions = await self._load_submissions(row.submission_id for row in rows)
        if status is not None:
            submissions = [s for s in submissions if s.status == status.value]
        return submissions

    async def _load_submissions(self, ids) -> list[AssignmentSubmission]:
        submissions = []
        for submission_id in ids:
            submission = await self.get_submission(submission_id)
            if submission:
                submissions.append(submission)
        submissions.sort(key=lambda s: s.submitted_at, reverse=True)
        return submissions
