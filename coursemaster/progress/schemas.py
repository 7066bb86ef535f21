"""Pydantic schemas for enrollments and lesson progress.

Request and response models for:
- Course enrollment
- Lesson completion
- Progress queries (student and admin)
"""

from datetime import datetime
from enum import Enum
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import Enrollment, LessonProgress, ModuleProgress


class EnrollmentStatusFilter(str, Enum):
    """Admin listing filter."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


# ==============================================================================
# Lesson Completion Schemas
# ==============================================================================


class RecordLessonCompletionRequest(BaseModel):
    """Request to record that a lesson was completed."""

    module_id: UUID = Field(..., description="Module UUID")
    lesson_id: UUID = Field(..., description="Lesson UUID")


class ProgressUpdateResponse(BaseModel):
    """Aggregate snapshot after a completion call."""

    completed_lessons: int
    total_lessons: int
    overall_progress: int = Field(description="0-100 percentage")
    is_completed: bool
    message: str


# ==============================================================================
# Progress Document Schemas
# ==============================================================================


class LessonProgressResponse(BaseModel):
    """Lesson progress entry."""

    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    completed: bool
    watched_duration: int = 0
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> Self:
        return cls.model_validate(entity)


class ModuleProgressResponse(BaseModel):
    """Module progress entry with its lessons."""

    module_id: UUID
    completed: bool
    lessons: list[LessonProgressResponse] = []

    @classmethod
    def from_entity(cls, entity: ModuleProgress) -> Self:
        return cls(
            module_id=entity.module_id,
            completed=entity.completed,
            lessons=[LessonProgressResponse.from_entity(lp) for lp in entity.lessons],
        )


# ==============================================================================
# Enrollment Schemas
# ==============================================================================


class EnrollRequest(BaseModel):
    """Request to enroll in a course."""

    course_id: UUID = Field(..., description="Course UUID to enroll in")


class EnrollmentResponse(BaseModel):
    """Enrollment summary (without the progress tree)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    course_id: UUID
    enrolled_at: datetime
    completed_lessons: int
    total_lessons: int
    overall_progress: int
    is_completed: bool
    completed_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: Enrollment) -> Self:
        return cls.model_validate(entity)


class EnrollmentProgressResponse(EnrollmentResponse):
    """Enrollment with the full progress document."""

    progress: list[ModuleProgressResponse] = []

    @classmethod
    def from_entity(cls, entity: Enrollment) -> Self:
        return cls(
            id=entity.id,
            student_id=entity.student_id,
            course_id=entity.course_id,
            enrolled_at=entity.enrolled_at,
            completed_lessons=entity.completed_lessons,
            total_lessons=entity.total_lessons,
            overall_progress=entity.overall_progress,
            is_completed=entity.is_completed,
            completed_at=entity.completed_at,
            progress=[ModuleProgressResponse.from_entity(m) for m in entity.progress],
        )


class EnrollmentListResponse(BaseModel):
    """List of student enrollments."""

    items: list[EnrollmentResponse]
    total: int


class EnrollmentStats(BaseModel):
    """Enrollment counts for a course."""

    total: int
    active: int
    completed: int


class CourseEnrollmentsResponse(BaseModel):
    """Admin view of a course's enrollments."""

    items: list[EnrollmentResponse]
    stats: EnrollmentStats
