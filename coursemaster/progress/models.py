"""Database models for enrollments and lesson progress.

Cassandra table definitions for:
- Enrollments: One row per enrollment, with the progress tree stored as a
  JSON document and a ``version`` column for conditional updates
- Lookup tables: Enrollment by (student, course) for uniqueness and
  per-student listing, and by course for admin listing

Architecture: The enrollment row is only ever written with lightweight
transactions (``IF NOT EXISTS`` on creation, ``IF version = ?`` on update),
so concurrent writers never silently overwrite each other.
"""

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from coursemaster.utils import percentage


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


def _parse_datetime(value: str | None) -> datetime | None:
    return ensure_utc_aware(datetime.fromisoformat(value)) if value else None


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    id UUID PRIMARY KEY,
    student_id UUID,
    course_id UUID,
    enrolled_at TIMESTAMP,
    progress TEXT,
    completed_lessons INT,
    total_lessons INT,
    overall_progress INT,
    is_completed BOOLEAN,
    completed_at TIMESTAMP,
    updated_at TIMESTAMP,
    version INT
)
"""

# Lookup: enrollment by student - partitioned by student_id.
# The (student_id, course_id) row is written IF NOT EXISTS and is what
# guarantees a single enrollment per student and course.
ENROLLMENTS_BY_STUDENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_student (
    student_id UUID,
    course_id UUID,
    enrollment_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

# Lookup: enrollments by course - for the admin listing
ENROLLMENTS_BY_COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_course (
    course_id UUID,
    student_id UUID,
    enrollment_id UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (course_id, student_id)
)
"""

# All CQL statements for table setup
PROGRESS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_STUDENT_TABLE_CQL,
    ENROLLMENTS_BY_COURSE_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """Completion record for one lesson.

    Created lazily the first time the lesson is completed; never
    pre-populated for lessons the student has not touched.

    Attributes:
        lesson_id: Lesson UUID
        completed: Completion flag
        watched_duration: Minutes watched (informational)
        completed_at: Completion timestamp
    """

    def __init__(
        self,
        lesson_id: UUID,
        completed: bool = False,
        watched_duration: int = 0,
        completed_at: datetime | None = None,
    ):
        self.lesson_id = lesson_id
        self.completed = completed
        self.watched_duration = watched_duration
        self.completed_at = ensure_utc_aware(completed_at)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LessonProgress":
        return cls(
            lesson_id=UUID(str(data["lesson_id"])),
            completed=bool(data.get("completed", False)),
            watched_duration=data.get("watched_duration") or 0,
            completed_at=_parse_datetime(data.get("completed_at")),
        )

    def mark_completed(self, now: datetime) -> None:
        self.completed = True
        self.completed_at = now

    def to_dict(self) -> dict[str, Any]:
        return {
            "lesson_id": str(self.lesson_id),
            "completed": self.completed,
            "watched_duration": self.watched_duration,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }

    def __repr__(self) -> str:
        return f"<LessonProgress lesson={self.lesson_id} completed={self.completed}>"


class ModuleProgress:
    """Progress entries for the lessons of one module.

    Attributes:
        module_id: Module UUID
        lessons: Lesson progress entries, in completion order
        completed: Every lesson the course lists for the module is completed
    """

    def __init__(
        self,
        module_id: UUID,
        lessons: list[LessonProgress] | None = None,
        completed: bool = False,
    ):
        self.module_id = module_id
        self.lessons = lessons or []
        self.completed = completed

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModuleProgress":
        return cls(
            module_id=UUID(str(data["module_id"])),
            lessons=[LessonProgress.from_dict(item) for item in data.get("lessons") or []],
            completed=bool(data.get("completed", False)),
        )

    def find_lesson(self, lesson_id: UUID) -> LessonProgress | None:
        return next((lp for lp in self.lessons if lp.lesson_id == lesson_id), None)

    def ensure_lesson(self, lesson_id: UUID) -> LessonProgress:
        """Return the lesson entry, creating an incomplete one if absent."""
        lesson = self.find_lesson(lesson_id)
        if lesson is None:
            lesson = LessonProgress(lesson_id=lesson_id)
            self.lessons.append(lesson)
        return lesson

    @property
    def completed_lesson_ids(self) -> set[UUID]:
        return {lp.lesson_id for lp in self.lessons if lp.completed}

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_id": str(self.module_id),
            "lessons": [lp.to_dict() for lp in self.lessons],
            "completed": self.completed,
        }

    def __repr__(self) -> str:
        return (
            f"<ModuleProgress module={self.module_id} "
            f"{len(self.completed_lesson_ids)} done>"
        )


class Enrollment:
    """Course enrollment entity with its progress tree.

    Attributes:
        id: Enrollment UUID
        student_id: Student UUID
        course_id: Course UUID
        enrolled_at: Enrollment timestamp
        progress: Module progress entries
        completed_lessons: Completed lesson count (full rescan of ``progress``)
        total_lessons: Course lesson count at the last recompute
        overall_progress: Integer percentage 0-100
        is_completed: Set once overall progress reaches 100, never cleared
        completed_at: First completion timestamp
        updated_at: Last write timestamp
        version: Optimistic concurrency token, incremented on every write
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        id: UUID | None = None,
        enrolled_at: datetime | None = None,
        progress: list[ModuleProgress] | None = None,
        completed_lessons: int = 0,
        total_lessons: int = 0,
        overall_progress: int = 0,
        is_completed: bool = False,
        completed_at: datetime | None = None,
        updated_at: datetime | None = None,
        version: int = 0,
    ):
        self.id = id or uuid4()
        self.student_id = student_id
        self.course_id = course_id
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)
        self.progress = progress or []
        self.completed_lessons = completed_lessons
        self.total_lessons = total_lessons
        self.overall_progress = overall_progress
        self.is_completed = is_completed
        self.completed_at = ensure_utc_aware(completed_at)
        self.updated_at = ensure_utc_aware(updated_at)
        self.version = version

    # ==========================================================================
    # Progress tree helpers
    # ==========================================================================

    def find_module_progress(self, module_id: UUID) -> ModuleProgress | None:
        return next((mp for mp in self.progress if mp.module_id == module_id), None)

    def ensure_module_progress(self, module_id: UUID) -> ModuleProgress:
        """Return the module entry, creating an empty one if absent."""
        module = self.find_module_progress(module_id)
        if module is None:
            module = ModuleProgress(module_id=module_id)
            self.progress.append(module)
        return module

    def is_lesson_completed(self, module_id: UUID, lesson_id: UUID) -> bool:
        module = self.find_module_progress(module_id)
        if module is None:
            return False
        lesson = module.find_lesson(lesson_id)
        return lesson is not None and lesson.completed

    def complete_lesson(
        self, module_id: UUID, lesson_id: UUID, now: datetime
    ) -> LessonProgress:
        """Upsert the module and lesson entries and mark the lesson completed.

        A lesson that is already completed keeps its original ``completed_at``.
        """
        lesson = self.ensure_module_progress(module_id).ensure_lesson(lesson_id)
        if not lesson.completed:
            lesson.mark_completed(now)
        return lesson

    def count_completed_lessons(self) -> int:
        """Count completed lessons across every module."""
        return sum(
            1 for module in self.progress for lesson in module.lessons if lesson.completed
        )

    def recompute(
        self,
        total_lessons: int,
        module_lessons: dict[UUID, Iterable[UUID]],
        now: datetime,
    ) -> bool:
        """Recompute every aggregate from the progress tree.

        Args:
            total_lessons: Current lesson count of the course
            module_lessons: Lesson ids the course lists per module
            now: Timestamp used if the course becomes completed

        Returns:
            True when this recompute completed the course
        """
        self.completed_lessons = self.count_completed_lessons()
        self.total_lessons = total_lessons
        self.overall_progress = min(
            100, percentage(self.completed_lessons, self.total_lessons)
        )

        for module in self.progress:
            listed = set(module_lessons.get(module.module_id, ()))
            if listed and listed <= module.completed_lesson_ids:
                module.completed = True

        if self.overall_progress >= 100 and not self.is_completed:
            self.is_completed = True
            self.completed_at = now
            return True
        return False

    def snapshot(self) -> dict[str, Any]:
        """Aggregate view returned by the completion operation."""
        return {
            "completed_lessons": self.completed_lessons,
            "total_lessons": self.total_lessons,
            "overall_progress": self.overall_progress,
            "is_completed": self.is_completed,
        }

    # ==========================================================================
    # Serialization
    # ==========================================================================

    def progress_json(self) -> str:
        """Serialize the progress tree for the ``progress`` column."""
        return json.dumps([module.to_dict() for module in self.progress])

    @staticmethod
    def _parse_progress(raw: str | None) -> list[ModuleProgress]:
        if not raw:
            return []
        return [ModuleProgress.from_dict(item) for item in json.loads(raw)]

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            id=row.id,
            student_id=row.student_id,
            course_id=row.course_id,
            enrolled_at=row.enrolled_at,
            progress=cls._parse_progress(row.progress),
            completed_lessons=row.completed_lessons or 0,
            total_lessons=row.total_lessons or 0,
            overall_progress=row.overall_progress or 0,
            is_completed=bool(row.is_completed),
            completed_at=row.completed_at,
            updated_at=row.updated_at,
            version=row.version or 0,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "student_id": self.student_id,
            "course_id": self.course_id,
            "enrolled_at": self.enrolled_at,
            "progress": [module.to_dict() for module in self.progress],
            "completed_lessons": self.completed_lessons,
            "total_lessons": self.total_lessons,
            "overall_progress": self.overall_progress,
            "is_completed": self.is_completed,
            "completed_at": self.completed_at,
            "updated_at": self.updated_at,
            "version": self.version,
        }

    def __repr__(self) -> str:
        return (
            f"<Enrollment student={self.student_id} course={self.course_id} "
            f"{self.overall_progress}%>"
        )
