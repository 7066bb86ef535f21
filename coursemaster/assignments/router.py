"""Assignment API endpoints.

Provides routes for:
- Submission and resubmission (enrolled students)
- My submissions
- Review and grading (admin)
"""

from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from coursemaster.auth.dependencies import AdminUser, CurrentUser
from coursemaster.core.exceptions import AppError

from .dependencies import AssignmentServiceDep, handle_assignment_error
from .models import SubmissionStatus
from .schemas import (
    GradeSubmissionRequest,
    SubmissionListResponse,
    SubmissionReceiptResponse,
    SubmissionResponse,
    SubmitAssignmentRequest,
)


router = APIRouter(prefix="/v1/assignments", tags=["assignments"])
admin_router = APIRouter(prefix="/v1/admin/assignments", tags=["admin"])


@router.post(
    "",
    response_model=SubmissionReceiptResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an assignment",
    responses={200: {"description": "Existing submission overwritten"}},
)
async def submit_assignment(
    data: SubmitAssignmentRequest,
    response: Response,
    assignment_service: AssignmentServiceDep,
    user: CurrentUser,
) -> SubmissionReceiptResponse:
    """Submit an assignment, or overwrite my previous submission for it."""
    try:
        submission, created = await assignment_service.upsert_submission(
            student_id=user.id,
            course_id=data.course_id,
            assignment_id=data.assignment_id,
            module_id=data.module_id,
            submission_type=data.submission_type.value,
            content=data.content,
        )
    except AppError as e:
        raise handle_assignment_error(e) from e

    if created:
        message = "Assignment submitted successfully"
    else:
        response.status_code = status.HTTP_200_OK
        message = "Assignment resubmitted successfully"

    return SubmissionReceiptResponse(
        message=message,
        submission=SubmissionResponse.from_entity(submission),
    )


@router.get(
    "",
    response_model=SubmissionListResponse,
    summary="List my submissions",
)
async def list_my_submissions(
    assignment_service: AssignmentServiceDep,
    user: CurrentUser,
    course_id: UUID | None = None,
) -> SubmissionListResponse:
    submissions = await assignment_service.list_student_submissions(user.id, course_id)
    return SubmissionListResponse(
        items=[SubmissionResponse.from_entity(s) for s in submissions],
        total=len(submissions),
    )


@admin_router.get(
    "",
    response_model=SubmissionListResponse,
    summary="List course submissions (admin)",
)
async def list_course_submissions(
    assignment_service: AssignmentServiceDep,
    _admin: AdminUser,
    course_id: UUID = Query(..., description="Course UUID"),
    status_filter: SubmissionStatus | None = Query(None, alias="status"),
) -> SubmissionListResponse:
    """List submissions for a course, optionally only pending or graded ones."""
    submissions = await assignment_service.list_course_submissions(
        course_id, status_filter
    )
    return SubmissionListResponse(
        items=[SubmissionResponse.from_entity(s) for s in submissions],
        total=len(submissions),
    )


@admin_router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Get submission (admin)",
)
async def get_submission(
    submission_id: UUID,
    assignment_service: AssignmentServiceDep,
    _admin: AdminUser,
) -> SubmissionResponse:
    try:
        submission = await assignment_service.require_submission(submission_id)
    except AppError as e:
        raise handle_assignment_error(e) from e
    return SubmissionResponse.from_entity(submission)


@admin_router.patch(
    "/{submission_id}",
    response_model=SubmissionReceiptResponse,
    summary="Grade submission (admin)",
)
async def grade_submission(
    submission_id: UUID,
    data: GradeSubmissionRequest,
    assignment_service: AssignmentServiceDep,
    admin: AdminUser,
) -> SubmissionReceiptResponse:
    """Grade or re-grade a submission."""
    try:
        submission = await assignment_service.grade_submission(
            admin_id=admin.id,
            submission_id=submission_id,
            grade=data.grade,
            feedback=data.feedback,
        )
    except AppError as e:
        raise handle_assignment_error(e) from e

    return SubmissionReceiptResponse(
        message="Assignment graded successfully",
        submission=SubmissionResponse.from_entity(submission),
    )
