"""Pydantic schemas for assignment submissions."""

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import AssignmentSubmission, SubmissionStatus, SubmissionType


class SubmitAssignmentRequest(BaseModel):
    """Assignment submission (or resubmission)."""

    course_id: UUID = Field(..., description="Course UUID")
    assignment_id: UUID = Field(..., description="Assignment UUID")
    module_id: UUID | None = Field(None, description="Module UUID")
    submission_type: SubmissionType
    content: str = Field(..., min_length=1, max_length=20000)


class GradeSubmissionRequest(BaseModel):
    """Grade given by an admin. The upper bound is the assignment's max score."""

    grade: int
    feedback: str | None = Field(None, max_length=5000)


class SubmissionResponse(BaseModel):
    """Stored submission."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    course_id: UUID
    assignment_id: UUID
    module_id: UUID | None = None
    submission_type: SubmissionType
    content: str
    submitted_at: datetime
    status: SubmissionStatus
    grade: int | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
    graded_by: UUID | None = None

    @classmethod
    def from_entity(cls, entity: AssignmentSubmission) -> Self:
        return cls.model_validate(entity)


class SubmissionReceiptResponse(BaseModel):
    """Response to a submission, resubmission or grading."""

    message: str
    submission: SubmissionResponse


class SubmissionListResponse(BaseModel):
    items: list[SubmissionResponse]
    total: int
