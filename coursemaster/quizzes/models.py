"""Database models for quiz attempts.

Attempts are append-only, so they are written in full to both listing
tables instead of being referenced from a main table:
- quiz_attempts_by_student: "my attempts", newest first
- quiz_attempts_by_course: admin review, newest first
"""

import json
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


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

_ATTEMPT_COLUMNS = """
    id UUID,
    student_id UUID,
    course_id UUID,
    quiz_id UUID,
    module_id UUID,
    answers TEXT,
    score INT,
    max_score INT,
    percentage INT,
    passed BOOLEAN,
    passing_score INT,
    started_at TIMESTAMP,
    completed_at TIMESTAMP,
    time_spent INT,
"""

QUIZ_ATTEMPTS_BY_STUDENT_TABLE_CQL = (
    "CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts_by_student ("
    + _ATTEMPT_COLUMNS
    + """
    PRIMARY KEY (student_id, completed_at, id)
) WITH CLUSTERING ORDER BY (completed_at DESC, id ASC)
"""
)

QUIZ_ATTEMPTS_BY_COURSE_TABLE_CQL = (
    "CREATE TABLE IF NOT EXISTS {keyspace}.quiz_attempts_by_course ("
    + _ATTEMPT_COLUMNS
    + """
    PRIMARY KEY (course_id, completed_at, id)
) WITH CLUSTERING ORDER BY (completed_at DESC, id ASC)
"""
)

# All CQL statements for table setup
QUIZZES_TABLES_CQL = [
    QUIZ_ATTEMPTS_BY_STUDENT_TABLE_CQL,
    QUIZ_ATTEMPTS_BY_COURSE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class GradedAnswer:
    """One graded answer, immutable once the attempt is stored."""

    def __init__(
        self,
        question_id: UUID,
        selected_option: int,
        is_correct: bool,
        points: int,
    ):
        self.question_id = question_id
        self.selected_option = selected_option
        self.is_correct = is_correct
        self.points = points

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GradedAnswer":
        return cls(
            question_id=UUID(str(data["question_id"])),
            selected_option=data["selected_option"],
            is_correct=bool(data["is_correct"]),
            points=data.get("points") or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": str(self.question_id),
            "selected_option": self.selected_option,
            "is_correct": self.is_correct,
            "points": self.points,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GradedAnswer):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"<GradedAnswer question={self.question_id} "
            f"option={self.selected_option} correct={self.is_correct}>"
        )


class QuizAttempt:
    """Quiz attempt entity (one per submission).

    Attributes:
        id: Attempt UUID
        student_id: Student UUID
        course_id: Course UUID
        quiz_id: Quiz UUID
        module_id: Module UUID (optional)
        answers: Graded answers in submission order
        score: Points awarded
        max_score: Points available over the matched questions
        percentage: Rounded score percentage
        passed: percentage >= passing_score
        passing_score: The quiz's passing score when the attempt was graded
        started_at: Client-supplied start time
        completed_at: Server time at submission
        time_spent: Seconds between start and submission, never negative
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        quiz_id: UUID,
        answers: list[GradedAnswer],
        score: int,
        max_score: int,
        percentage: int,
        passed: bool,
        passing_score: int,
        started_at: datetime,
        completed_at: datetime,
        time_spent: int,
        module_id: UUID | None = None,
        id: UUID | None = None,
    ):
        self.id = id or uuid4()
        self.student_id = student_id
        self.course_id = course_id
        self.quiz_id = quiz_id
        self.module_id = module_id
        self.answers = answers
        self.score = score
        self.max_score = max_score
        self.percentage = percentage
        self.passed = passed
        self.passing_score = passing_score
        self.started_at = ensure_utc_aware(started_at)
        self.completed_at = ensure_utc_aware(completed_at)
        self.time_spent = time_spent

    def answers_json(self) -> str:
        return json.dumps([answer.to_dict() for answer in self.answers])

    @classmethod
    def from_row(cls, row: Any) -> "QuizAttempt":
        """Create QuizAttempt instance from Cassandra row."""
        return cls(
            id=row.id,
            student_id=row.student_id,
            course_id=row.course_id,
            quiz_id=row.quiz_id,
            module_id=row.module_id,
            answers=[GradedAnswer.from_dict(a) for a in json.loads(row.answers or "[]")],
            score=row.score or 0,
            max_score=row.max_score or 0,
            percentage=row.percentage or 0,
            passed=bool(row.passed),
            passing_score=row.passing_score or 0,
            started_at=row.started_at,
            completed_at=row.completed_at,
            time_spent=row.time_spent or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "quiz_id": self.quiz_id,
            "module_id": self.module_id,
            "answers": [answer.to_dict() for answer in self.answers],
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "passed": self.passed,
            "passing_score": self.passing_score,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "time_spent": self.time_spent,
        }

    def __repr__(self) -> str:
        return (
            f"<QuizAttempt student={self.student_id} quiz={self.quiz_id} "
            f"{self.score}/{self.max_score}>"
        )
