"""Pydantic schemas for the course catalog.

Request and response models for:
- Course creation and full-content replacement
- Course detail (answers hidden from non-admins)
- Published course listing
"""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from coursemaster.courses.models import (
    DEFAULT_MAX_SCORE,
    DEFAULT_PASSING_SCORE,
    DEFAULT_QUESTION_POINTS,
    DEFAULT_TIME_LIMIT_MINUTES,
    Assignment,
    Course,
    CourseSummary,
    Lesson,
    Module,
    Question,
    Quiz,
)


# ==============================================================================
# Content Input Schemas
# ==============================================================================


class LessonInput(BaseModel):
    """Lesson inside a module (id generated when absent)."""

    id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=200)
    duration: int = Field(0, ge=0, description="Duration in minutes")
    is_free: bool = False
    order: int = Field(0, ge=0)

    def to_entity(self) -> Lesson:
        return Lesson(
            id=self.id,
            title=self.title,
            duration=self.duration,
            is_free=self.is_free,
            order=self.order,
        )


class ModuleInput(BaseModel):
    """Module with its lessons (id generated when absent)."""

    id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=200)
    order: int = Field(0, ge=0)
    lessons: list[LessonInput] = Field(default_factory=list)

    def to_entity(self) -> Module:
        return Module(
            id=self.id,
            title=self.title,
            order=self.order,
            lessons=[lesson.to_entity() for lesson in self.lessons],
        )


class QuestionInput(BaseModel):
    """Multiple-choice question."""

    id: UUID | None = None
    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0, description="Index into options")
    points: int = Field(DEFAULT_QUESTION_POINTS, ge=0)

    @model_validator(mode="after")
    def validate_correct_answer(self) -> Self:
        if self.correct_answer >= len(self.options):
            msg = "correct_answer must index one of the options"
            raise ValueError(msg)
        return self

    def to_entity(self) -> Question:
        return Question(
            id=self.id,
            question=self.question,
            options=self.options,
            correct_answer=self.correct_answer,
            points=self.points,
        )


class QuizInput(BaseModel):
    """Quiz definition."""

    id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=200)
    module_id: UUID | None = None
    questions: list[QuestionInput] = Field(default_factory=list)
    passing_score: int = Field(DEFAULT_PASSING_SCORE, ge=0, le=100)
    time_limit: int = Field(DEFAULT_TIME_LIMIT_MINUTES, ge=1, description="Minutes")

    def to_entity(self) -> Quiz:
        return Quiz(
            id=self.id,
            title=self.title,
            module_id=self.module_id,
            questions=[q.to_entity() for q in self.questions],
            passing_score=self.passing_score,
            time_limit=self.time_limit,
        )


class AssignmentInput(BaseModel):
    """Assignment definition."""

    id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=10000)
    module_id: UUID | None = None
    max_score: int = Field(DEFAULT_MAX_SCORE, ge=0)
    due_date: datetime | None = None

    def to_entity(self) -> Assignment:
        return Assignment(
            id=self.id,
            title=self.title,
            description=self.description,
            module_id=self.module_id,
            max_score=self.max_score,
            due_date=self.due_date,
        )


# ==============================================================================
# Course Request Schemas
# ==============================================================================


class CourseContentRequest(BaseModel):
    """Full course payload, used for both creation and replacement."""

    title: str = Field(..., min_length=3, max_length=200, description="Course title")
    description: str = Field("", max_length=5000, description="Course description")
    thumbnail_url: str | None = Field(
        None, max_length=500, description="Thumbnail image URL"
    )
    price: Decimal | None = Field(None, ge=0, description="Recorded price")
    is_published: bool = Field(False, description="Visible in the public catalog")
    modules: list[ModuleInput] = Field(default_factory=list)
    quizzes: list[QuizInput] = Field(default_factory=list)
    assignments: list[AssignmentInput] = Field(default_factory=list)


class CreateCourseRequest(CourseContentRequest):
    """Course creation request."""


class UpdateCourseRequest(CourseContentRequest):
    """Course replacement request (PUT semantics)."""


# ==============================================================================
# Response Schemas
# ==============================================================================


class LessonResponse(BaseModel):
    id: UUID
    title: str
    duration: int
    is_free: bool
    order: int


class ModuleResponse(BaseModel):
    id: UUID
    title: str
    order: int
    lessons: list[LessonResponse]


class QuestionResponse(BaseModel):
    """Question as shown to callers; ``correct_answer`` is None for students."""

    id: UUID
    question: str
    options: list[str]
    correct_answer: int | None = None
    points: int


class QuizResponse(BaseModel):
    id: UUID
    title: str
    module_id: UUID | None = None
    questions: list[QuestionResponse]
    passing_score: int
    time_limit: int


class AssignmentResponse(BaseModel):
    id: UUID
    title: str
    description: str
    module_id: UUID | None = None
    max_score: int
    due_date: datetime | None = None


class CourseResponse(BaseModel):
    """Course detail response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    description: str
    thumbnail_url: str | None = None
    price: Decimal | None = None
    is_published: bool
    instructor_id: UUID | None = None
    modules: list[ModuleResponse]
    quizzes: list[QuizResponse]
    assignments: list[AssignmentResponse]
    total_lessons: int
    total_duration: int
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, course: Course, include_answers: bool = False) -> Self:
        """Build the response, hiding correct answers unless asked not to."""
        quizzes = [
            QuizResponse(
                id=quiz.id,
                title=quiz.title,
                module_id=quiz.module_id,
                passing_score=quiz.passing_score,
                time_limit=quiz.time_limit,
                questions=[
                    QuestionResponse(
                        id=q.id,
                        question=q.question,
                        options=q.options,
                        correct_answer=q.correct_answer if include_answers else None,
                        points=q.points,
                    )
                    for q in quiz.questions
                ],
            )
            for quiz in course.quizzes
        ]
        return cls(
            id=course.id,
            title=course.title,
            slug=course.slug,
            description=course.description,
            thumbnail_url=course.thumbnail_url,
            price=course.price,
            is_published=course.is_published,
            instructor_id=course.instructor_id,
            modules=[
                ModuleResponse(
                    id=m.id,
                    title=m.title,
                    order=m.order,
                    lessons=[
                        LessonResponse(
                            id=lesson.id,
                            title=lesson.title,
                            duration=lesson.duration,
                            is_free=lesson.is_free,
                            order=lesson.order,
                        )
                        for lesson in m.lessons
                    ],
                )
                for m in course.modules
            ],
            quizzes=quizzes,
            assignments=[
                AssignmentResponse(
                    id=a.id,
                    title=a.title,
                    description=a.description,
                    module_id=a.module_id,
                    max_score=a.max_score,
                    due_date=a.due_date,
                )
                for a in course.assignments
            ],
            total_lessons=course.total_lessons,
            total_duration=course.total_duration,
            created_at=course.created_at,
            updated_at=course.updated_at,
        )


class CourseSummaryResponse(BaseModel):
    """Catalog listing entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str | None = None
    description: str | None = None
    thumbnail_url: str | None = None
    price: Decimal | None = None
    instructor_id: UUID | None = None
    total_lessons: int = 0
    total_duration: int = 0
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, summary: CourseSummary) -> Self:
        return cls.model_validate(summary)


class CourseListResponse(BaseModel):
    """Published course list response."""

    items: list[CourseSummaryResponse]
    total: int
