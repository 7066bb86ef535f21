"""Enrollment and progress API endpoints.

Provides routes for:
- Course enrollment
- Lesson completion
- Progress queries (owner)
- Course enrollment listing (admin)
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from coursemaster.auth.dependencies import AdminUser, CurrentUser
from coursemaster.core.exceptions import AppError

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    CourseEnrollmentsResponse,
    EnrollmentListResponse,
    EnrollmentProgressResponse,
    EnrollmentResponse,
    EnrollmentStatusFilter,
    EnrollRequest,
    ProgressUpdateResponse,
    RecordLessonCompletionRequest,
)


router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])
admin_router = APIRouter(prefix="/v1/admin/enrollments", tags=["admin"])


# ==============================================================================
# Enrollment Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in course",
)
async def enroll(
    data: EnrollRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentResponse:
    """Enroll the current student in a course."""
    try:
        enrollment = await progress_service.enroll(user.id, data.course_id)
    except AppError as e:
        raise handle_progress_error(e) from e
    return EnrollmentResponse.from_entity(enrollment)


@router.get(
    "/my",
    response_model=EnrollmentListResponse,
    summary="List my enrollments",
)
async def list_my_enrollments(
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentListResponse:
    """List the current student's enrollments, newest first."""
    enrollments = await progress_service.list_student_enrollments(user.id)
    return EnrollmentListResponse(
        items=[EnrollmentResponse.from_entity(e) for e in enrollments],
        total=len(enrollments),
    )


# ==============================================================================
# Progress Endpoints
# ==============================================================================


@router.get(
    "/{enrollment_id}/progress",
    response_model=EnrollmentProgressResponse,
    summary="Get enrollment progress",
)
async def get_progress(
    enrollment_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> EnrollmentProgressResponse:
    """Get the full progress document of one of my enrollments."""
    try:
        enrollment = await progress_service.get_progress(user.id, enrollment_id)
    except AppError as e:
        raise handle_progress_error(e) from e
    return EnrollmentProgressResponse.from_entity(enrollment)


@router.post(
    "/{enrollment_id}/progress",
    response_model=ProgressUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Record lesson completion",
)
async def record_lesson_completion(
    enrollment_id: UUID,
    data: RecordLessonCompletionRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> ProgressUpdateResponse:
    """Mark a lesson as completed and return the updated aggregates.

    Completing a lesson twice is not an error; the second call returns the
    current aggregates unchanged.
    """
    try:
        enrollment, changed = await progress_service.record_lesson_completion(
            student_id=user.id,
            enrollment_id=enrollment_id,
            module_id=data.module_id,
            lesson_id=data.lesson_id,
        )
    except AppError as e:
        raise handle_progress_error(e) from e

    return ProgressUpdateResponse(
        **enrollment.snapshot(),
        message=(
            "Progress updated successfully" if changed else "Lesson already completed"
        ),
    )


# ==============================================================================
# Admin Endpoints
# ==============================================================================


@admin_router.get(
    "",
    response_model=CourseEnrollmentsResponse,
    summary="List course enrollments (admin)",
)
async def list_course_enrollments(
    progress_service: ProgressServiceDep,
    _admin: AdminUser,
    course_id: UUID = Query(..., description="Course UUID"),
    status_filter: EnrollmentStatusFilter = Query(
        EnrollmentStatusFilter.ALL, alias="status"
    ),
) -> CourseEnrollmentsResponse:
    """List a course's enrollments with total/active/completed counts."""
    enrollments, stats = await progress_service.list_course_enrollments(
        course_id, status_filter
    )
    return CourseEnrollmentsResponse(
        items=[EnrollmentResponse.from_entity(e) for e in enrollments],
        stats=stats,
    )
