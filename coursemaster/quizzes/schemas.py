"""Pydantic schemas for quiz attempts."""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .grading import UNANSWERED, SubmittedAnswer
from .models import GradedAnswer, QuizAttempt


class AnswerInput(BaseModel):
    """One answer as submitted by the student."""

    question_id: UUID
    selected_option: int = Field(
        ..., ge=UNANSWERED, description="Option index, -1 when left unanswered"
    )

    def to_submitted(self) -> SubmittedAnswer:
        return SubmittedAnswer(self.question_id, self.selected_option)


class SubmitQuizRequest(BaseModel):
    """Quiz submission."""

    course_id: UUID = Field(..., description="Course UUID")
    quiz_id: UUID = Field(..., description="Quiz UUID")
    module_id: UUID | None = Field(None, description="Module UUID")
    answers: list[AnswerInput] = Field(default_factory=list)
    started_at: datetime = Field(..., description="When the student started")


class GradedAnswerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: UUID
    selected_option: int
    is_correct: bool
    points: int

    @classmethod
    def from_entity(cls, entity: GradedAnswer) -> Self:
        return cls.model_validate(entity)


class QuizResultResponse(BaseModel):
    """Grading result of a single attempt."""

    score: int
    max_score: int
    percentage: int
    passed: bool
    passing_score: int
    time_spent: int = Field(description="Seconds")
    answers: list[GradedAnswerResponse]


class QuizSubmissionResponse(BaseModel):
    """Response to a quiz submission."""

    message: str
    attempt_id: UUID
    result: QuizResultResponse


class QuizAttemptResponse(BaseModel):
    """Stored attempt."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    course_id: UUID
    quiz_id: UUID
    module_id: UUID | None = None
    answers: list[GradedAnswerResponse]
    score: int
    max_score: int
    percentage: int
    passed: bool
    passing_score: int
    started_at: datetime
    completed_at: datetime
    time_spent: int

    @classmethod
    def from_entity(cls, entity: QuizAttempt) -> Self:
        return cls.model_validate(entity)


class QuizAttemptListResponse(BaseModel):
    items: list[QuizAttemptResponse]
    total: int
