"""Database models for assignment submissions.

Cassandra table definitions for:
- Submissions: Main table keyed by submission id
- Lookup tables: (student, assignment) for the one-submission rule and
  per-student listing, and by course for admin review
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class SubmissionStatus(str, Enum):
    """Review state of a submission."""

    PENDING = "pending"
    GRADED = "graded"


class SubmissionType(str, Enum):
    """How the work is delivered."""

    LINK = "link"
    TEXT = "text"


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SUBMISSIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.assignment_submissions (
    id UUID PRIMARY KEY,
    student_id UUID,
    course_id UUID,
    assignment_id UUID,
    module_id UUID,
    submission_type TEXT,
    content TEXT,
    submitted_at TIMESTAMP,
    status TEXT,
    grade INT,
    feedback TEXT,
    graded_at TIMESTAMP,
    graded_by UUID
)
"""

# Lookup: one row per (student, assignment), written IF NOT EXISTS
SUBMISSIONS_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submissions_by_student (
    student_id UUID,
    assignment_id UUID,
    course_id UUID,
    submission_id UUID,
    PRIMARY KEY (student_id, assignment_id)
)
"""

# Lookup: submissions by course - for admin review
SUBMISSIONS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submissions_by_course (
    course_id UUID,
    submission_id UUID,
    PRIMARY KEY (course_id, submission_id)
)
"""

# All CQL statements for table setup
ASSIGNMENTS_TABLES_CQL = [
    SUBMISSIONS_TABLE_CQL,
    SUBMISSIONS_BY_STUDENT_TABLE_CQL,
    SUBMISSIONS_BY_COURSE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class AssignmentSubmission:
    """A student's submission for one assignment.

    State machine: ``pending`` until an admin grades it, then ``graded``.
    Re-grading stays ``graded`` and overwrites grade, feedback and grader.
    Resubmitting overwrites the delivered work but never changes the status.

    Attributes:
        id: Submission UUID
        student_id: Student UUID
        course_id: Course UUID
        assignment_id: Assignment UUID (within the course)
        module_id: Module UUID (optional)
        submission_type: link or text
        content: URL or text of the work
        submitted_at: Last (re)submission timestamp
        status: pending or graded
        grade: Score between 0 and the assignment's max score
        feedback: Grader's comments
        graded_at: Last grading timestamp
        graded_by: Admin who graded last
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        assignment_id: UUID,
        submission_type: str,
        content: str,
        module_id: UUID | None = None,
        id: UUID | None = None,
        submitted_at: datetime | None = None,
        status: str = SubmissionStatus.PENDING.value,
        grade: int | None = None,
        feedback: str | None = None,
        graded_at: datetime | None = None,
        graded_by: UUID | None = None,
    ):
        self.id = id or uuid4()
        self.student_id = student_id
        self.course_id = course_id
        self.assignment_id = assignment_id
        self.module_id = module_id
        self.submission_type = submission_type
        self.content = content
        self.submitted_at = ensure_utc_aware(submitted_at) or datetime.now(UTC)
        self.status = status
        self.grade = grade
        self.feedback = feedback
        self.graded_at = ensure_utc_aware(graded_at)
        self.graded_by = graded_by

    @property
    def is_graded(self) -> bool:
        return self.status == SubmissionStatus.GRADED.value

    def resubmit(
        self,
        submission_type: str,
        content: str,
        now: datetime,
        module_id: UUID | None = None,
    ) -> None:
        """Overwrite the delivered work, keeping status and grade."""
        self.submission_type = submission_type
        self.content = content
        self.submitted_at = now
        if module_id is not None:
            self.module_id = module_id

    def apply_grade(
        self, grade: int, feedback: str | None, grader_id: UUID, now: datetime
    ) -> None:
        self.grade = grade
        self.feedback = feedback
        self.status = SubmissionStatus.GRADED.value
        self.graded_at = now
        self.graded_by = grader_id

    @classmethod
    def from_row(cls, row: Any) -> "AssignmentSubmission":
        """Create AssignmentSubmission instance from Cassandra row."""
        return cls(
            id=row.id,
            student_id=row.student_id,
            course_id=row.course_id,
            assignment_id=row.assignment_id,
            module_id=row.module_id,
            submission_type=row.submission_type,
            content=row.content or "",
            submitted_at=row.submitted_at,
            status=row.status or SubmissionStatus.PENDING.value,
            grade=row.grade,
            feedback=row.feedback,
            graded_at=row.graded_at,
            graded_by=row.graded_by,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "assignment_id": self.assignment_id,
            "module_id": self.module_id,
            "submission_type": self.submission_type,
            "content": self.content,
            "submitted_at": self.submitted_at,
            "status": self.status,
            "grade": self.grade,
            "feedback": self.feedback,
            "graded_at": self.graded_at,
            "graded_by": self.graded_by,
        }

    def __repr__(self) -> str:
        return (
            f"<AssignmentSubmission student={self.student_id} "
            f"assignment={self.assignment_id} {self.status}>"
        )
