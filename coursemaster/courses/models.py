"""Database models for the course catalog.

A course is stored as one row whose ``content`` column holds the ordered
modules (with their lessons), the quizzes and the assignments as a JSON
document. Derived totals live in their own columns so listings and the
progress engine can read them without parsing the document.

Tables:
- courses: Main course table (document + totals)
- courses_by_status: Listing table for published/draft catalogs
"""

import json
import re
import unicodedata
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4


DEFAULT_PASSING_SCORE = 60
DEFAULT_TIME_LIMIT_MINUTES = 30
DEFAULT_QUESTION_POINTS = 1
DEFAULT_MAX_SCORE = 100


class CourseStatus:
    """Values of the ``status`` partition key in ``courses_by_status``."""

    PUBLISHED = "published"
    DRAFT = "draft"

    @classmethod
    def for_flag(cls, is_published: bool) -> str:
        return cls.PUBLISHED if is_published else cls.DRAFT


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    slug TEXT,
    description TEXT,
    thumbnail_url TEXT,
    price DECIMAL,
    is_published BOOLEAN,
    instructor_id UUID,
    content TEXT,
    total_lessons INT,
    total_duration INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

COURSES_BY_STATUS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_status (
    status TEXT,
    created_at TIMESTAMP,
    course_id UUID,
    title TEXT,
    slug TEXT,
    description TEXT,
    thumbnail_url TEXT,
    price DECIMAL,
    instructor_id UUID,
    total_lessons INT,
    total_duration INT,
    PRIMARY KEY (status, created_at, course_id)
) WITH CLUSTERING ORDER BY (created_at DESC, course_id ASC)
"""

# All CQL statements for table setup
COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSES_BY_STATUS_TABLE_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def generate_slug(title: str) -> str:
    """Generate URL-friendly slug from title."""
    # Normalize unicode characters
    slug = unicodedata.normalize("NFKD", title)
    slug = slug.encode("ascii", "ignore").decode("ascii")
    # Convert to lowercase and replace spaces with hyphens
    slug = slug.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    return re.sub(r"[-\s]+", "-", slug)


def as_uuid(value: Any) -> UUID | None:
    """Coerce a stored id (UUID or string) to UUID."""
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return ensure_utc_aware(value)
    return ensure_utc_aware(datetime.fromisoformat(value))


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _uuid_str(value: UUID | None) -> str | None:
    return str(value) if value else None


# ==============================================================================
# Content Entities
# ==============================================================================


class Lesson:
    """A single lesson inside a module.

    Attributes:
        id: Lesson UUID
        title: Lesson title
        duration: Duration in minutes
        is_free: Preview lesson available without enrollment
        order: Position within the module
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        duration: int = 0,
        is_free: bool = False,
        order: int = 0,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.duration = duration
        self.is_free = is_free
        self.order = order

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Lesson":
        return cls(
            id=as_uuid(data.get("id")),
            title=data.get("title", ""),
            duration=data.get("duration") or 0,
            is_free=bool(data.get("is_free", False)),
            order=data.get("order") or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "duration": self.duration,
            "is_free": self.is_free,
            "order": self.order,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.title} (order={self.order})>"


class Module:
    """An ordered group of lessons.

    Attributes:
        id: Module UUID
        title: Module title
        order: Position within the course
        lessons: Lessons, kept sorted by ``order`` on save
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        order: int = 0,
        lessons: list[Lesson] | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.order = order
        self.lessons = lessons or []

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Module":
        return cls(
            id=as_uuid(data.get("id")),
            title=data.get("title", ""),
            order=data.get("order") or 0,
            lessons=[Lesson.from_dict(item) for item in data.get("lessons") or []],
        )

    @property
    def lesson_ids(self) -> list[UUID]:
        return [lesson.id for lesson in self.lessons]

    @property
    def duration(self) -> int:
        return sum(lesson.duration for lesson in self.lessons)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "order": self.order,
            "lessons": [lesson.to_dict() for lesson in self.lessons],
        }

    def __repr__(self) -> str:
        return f"<Module {self.title} ({len(self.lessons)} lessons)>"


class Question:
    """Multiple-choice question.

    ``correct_answer`` is an index into ``options``.
    """

    def __init__(
        self,
        id: UUID | None = None,
        question: str = "",
        options: list[str] | None = None,
        correct_answer: int = 0,
        points: int = DEFAULT_QUESTION_POINTS,
    ):
        self.id = id or uuid4()
        self.question = question
        self.options = options or []
        self.correct_answer = correct_answer
        self.points = points

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        points = data.get("points")
        return cls(
            id=as_uuid(data.get("id")),
            question=data.get("question", ""),
            options=list(data.get("options") or []),
            correct_answer=data.get("correct_answer", 0),
            points=DEFAULT_QUESTION_POINTS if points is None else points,
        )

    def has_option(self, index: int) -> bool:
        """Whether ``index`` points at one of the listed options."""
        return 0 <= index < len(self.options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "question": self.question,
            "options": self.options,
            "correct_answer": self.correct_answer,
            "points": self.points,
        }


class Quiz:
    """Quiz definition attached to a course.

    Attributes:
        id: Quiz UUID
        title: Quiz title
        module_id: Module the quiz belongs to (optional)
        questions: Scored questions
        passing_score: Minimum percentage to pass (0-100)
        time_limit: Advisory limit in minutes, not enforced by the server
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        module_id: UUID | None = None,
        questions: list[Question] | None = None,
        passing_score: int = DEFAULT_PASSING_SCORE,
        time_limit: int = DEFAULT_TIME_LIMIT_MINUTES,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.module_id = module_id
        self.questions = questions or []
        self.passing_score = passing_score
        self.time_limit = time_limit

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quiz":
        passing_score = data.get("passing_score")
        time_limit = data.get("time_limit")
        return cls(
            id=as_uuid(data.get("id")),
            title=data.get("title", ""),
            module_id=as_uuid(data.get("module_id")),
            questions=[Question.from_dict(q) for q in data.get("questions") or []],
            passing_score=(
                DEFAULT_PASSING_SCORE if passing_score is None else passing_score
            ),
            time_limit=DEFAULT_TIME_LIMIT_MINUTES if time_limit is None else time_limit,
        )

    def find_question(self, question_id: UUID) -> Question | None:
        return next((q for q in self.questions if q.id == question_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "module_id": _uuid_str(self.module_id),
            "questions": [q.to_dict() for q in self.questions],
            "passing_score": self.passing_score,
            "time_limit": self.time_limit,
        }

    def __repr__(self) -> str:
        return f"<Quiz {self.title} ({len(self.questions)} questions)>"


class Assignment:
    """Assignment definition attached to a course."""

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str = "",
        module_id: UUID | None = None,
        max_score: int = DEFAULT_MAX_SCORE,
        due_date: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.module_id = module_id
        self.max_score = max_score
        self.due_date = ensure_utc_aware(due_date)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Assignment":
        max_score = data.get("max_score")
        return cls(
            id=as_uuid(data.get("id")),
            title=data.get("title", ""),
            description=data.get("description") or "",
            module_id=as_uuid(data.get("module_id")),
            max_score=DEFAULT_MAX_SCORE if max_score is None else max_score,
            due_date=_parse_datetime(data.get("due_date")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "module_id": _uuid_str(self.module_id),
            "max_score": self.max_score,
            "due_date": _format_datetime(self.due_date),
        }

    def __repr__(self) -> str:
        return f"<Assignment {self.title} (max={self.max_score})>"


# ==============================================================================
# Course Entity
# ==============================================================================


class Course:
    """Course entity: catalog metadata plus its content document.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        slug: URL-friendly identifier
        description: Course description
        thumbnail_url: Cover image URL
        price: Recorded price (no billing happens here)
        is_published: Visible in the public catalog
        instructor_id: Admin who created the course
        modules: Ordered modules with their lessons
        quizzes: Quiz definitions
        assignments: Assignment definitions
        total_lessons: Lesson count, recomputed on save
        total_duration: Sum of lesson durations in minutes, recomputed on save
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        slug: str | None = None,
        description: str = "",
        thumbnail_url: str | None = None,
        price: Decimal | None = None,
        is_published: bool = False,
        instructor_id: UUID | None = None,
        modules: list[Module] | None = None,
        quizzes: list[Quiz] | None = None,
        assignments: list[Assignment] | None = None,
        total_lessons: int = 0,
        total_duration: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.slug = slug or generate_slug(title)
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.price = price
        self.is_published = is_published
        self.instructor_id = instructor_id
        self.modules = modules or []
        self.quizzes = quizzes or []
        self.assignments = assignments or []
        self.total_lessons = total_lessons
        self.total_duration = total_duration
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @property
    def status(self) -> str:
        return CourseStatus.for_flag(self.is_published)

    def recompute_totals(self) -> None:
        """Sort modules and lessons by ``order`` and recompute the totals.

        Must run before every save so that ``total_lessons`` and
        ``total_duration`` always match the content being written.
        """
        self.modules.sort(key=lambda module: module.order)
        for module in self.modules:
            module.lessons.sort(key=lambda lesson: lesson.order)

        self.total_lessons = sum(len(module.lessons) for module in self.modules)
        self.total_duration = sum(module.duration for module in self.modules)

    def find_quiz(self, quiz_id: UUID) -> Quiz | None:
        return next((q for q in self.quizzes if q.id == quiz_id), None)

    def find_assignment(self, assignment_id: UUID) -> Assignment | None:
        return next((a for a in self.assignments if a.id == assignment_id), None)

    def lessons_by_module(self) -> dict[UUID, list[UUID]]:
        """Lesson ids the course currently lists, keyed by module id."""
        return {module.id: module.lesson_ids for module in self.modules}

    # ==========================================================================
    # Serialization
    # ==========================================================================

    def content_json(self) -> str:
        """Serialize modules, quizzes and assignments for the ``content`` column."""
        return json.dumps(
            {
                "modules": [module.to_dict() for module in self.modules],
                "quizzes": [quiz.to_dict() for quiz in self.quizzes],
                "assignments": [a.to_dict() for a in self.assignments],
            }
        )

    @staticmethod
    def _parse_content(content: str | dict[str, Any] | None) -> dict[str, list]:
        if not content:
            return {"modules": [], "quizzes": [], "assignments": []}
        data = json.loads(content) if isinstance(content, str) else content
        return {
            "modules": [Module.from_dict(m) for m in data.get("modules") or []],
            "quizzes": [Quiz.from_dict(q) for q in data.get("quizzes") or []],
            "assignments": [
                Assignment.from_dict(a) for a in data.get("assignments") or []
            ],
        }

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            slug=row.slug,
            description=row.description or "",
            thumbnail_url=row.thumbnail_url,
            price=row.price,
            is_published=bool(row.is_published),
            instructor_id=row.instructor_id,
            total_lessons=row.total_lessons or 0,
            total_duration=row.total_duration or 0,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **cls._parse_content(row.content),
        )

    def to_cache(self) -> str:
        """Serialize the whole course for the Redis cache."""
        return json.dumps(
            {
                "id": str(self.id),
                "title": self.title,
                "slug": self.slug,
                "description": self.description,
                "thumbnail_url": self.thumbnail_url,
                "price": str(self.price) if self.price is not None else None,
                "is_published": self.is_published,
                "instructor_id": _uuid_str(self.instructor_id),
                "content": self.content_json(),
                "total_lessons": self.total_lessons,
                "total_duration": self.total_duration,
                "created_at": _format_datetime(self.created_at),
                "updated_at": _format_datetime(self.updated_at),
            }
        )

    @classmethod
    def from_cache(cls, cached: str | bytes) -> "Course":
        """Rebuild a course from ``to_cache`` output."""
        data = json.loads(cached)
        price = data.get("price")
        return cls(
            id=as_uuid(data["id"]),
            title=data.get("title", ""),
            slug=data.get("slug"),
            description=data.get("description") or "",
            thumbnail_url=data.get("thumbnail_url"),
            price=Decimal(price) if price is not None else None,
            is_published=bool(data.get("is_published")),
            instructor_id=as_uuid(data.get("instructor_id")),
            total_lessons=data.get("total_lessons") or 0,
            total_duration=data.get("total_duration") or 0,
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
            **cls._parse_content(data.get("content")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "price": self.price,
            "is_published": self.is_published,
            "instructor_id": self.instructor_id,
            "modules": [module.to_dict() for module in self.modules],
            "quizzes": [quiz.to_dict() for quiz in self.quizzes],
            "assignments": [a.to_dict() for a in self.assignments],
            "total_lessons": self.total_lessons,
            "total_duration": self.total_duration,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.title} ({self.status})>"


class CourseSummary:
    """Listing row from ``courses_by_status``."""

    def __init__(
        self,
        id: UUID,
        title: str,
        slug: str | None,
        description: str | None,
        thumbnail_url: str | None,
        price: Decimal | None,
        instructor_id: UUID | None,
        total_lessons: int,
        total_duration: int,
        created_at: datetime | None,
    ):
        self.id = id
        self.title = title
        self.slug = slug
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.price = price
        self.instructor_id = instructor_id
        self.total_lessons = total_lessons
        self.total_duration = total_duration
        self.created_at = ensure_utc_aware(created_at)

    @classmethod
    def from_row(cls, row: Any) -> "CourseSummary":
        """Create CourseSummary instance from Cassandra row."""
        return cls(
            id=row.course_id,
            title=row.title or "",
            slug=row.slug,
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            price=row.price,
            instructor_id=row.instructor_id,
            total_lessons=row.total_lessons or 0,
            total_duration=row.total_duration or 0,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<CourseSummary {self.title}>"
