"""Course catalog API endpoints.

Provides routes for:
- Course creation and replacement (admin)
- Published catalog listing (public)
- Course detail (public; answers only for admins, drafts only for admins)
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from coursemaster.auth.dependencies import AdminUser, OptionalUser
from coursemaster.core.exceptions import AppError
from coursemaster.courses.dependencies import CourseServiceDep, handle_course_error
from coursemaster.courses.schemas import (
    CourseListResponse,
    CourseResponse,
    CourseSummaryResponse,
    CreateCourseRequest,
    UpdateCourseRequest,
)


router = APIRouter(prefix="/v1/courses", tags=["courses"])


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    user: AdminUser,
) -> CourseResponse:
    """Create a course with its modules, quizzes and assignments (ADMIN only)."""
    course = await course_service.create_course(data, user.id)
    return CourseResponse.from_entity(course, include_answers=True)


@router.get(
    "",
    response_model=CourseListResponse,
    summary="List published courses",
)
async def list_published_courses(
    course_service: CourseServiceDep,
) -> CourseListResponse:
    """List all published courses (public)."""
    courses = await course_service.list_published_courses()
    items = [CourseSummaryResponse.from_entity(c) for c in courses]
    return CourseListResponse(items=items, total=len(items))


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get course details",
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> CourseResponse:
    """Get course with modules, quizzes and assignments.

    Correct answers are only included for admins.
    """
    is_admin = user is not None and user.is_admin

    course = await course_service.get_course(course_id)
    if course is None or (not course.is_published and not is_admin):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )

    return CourseResponse.from_entity(course, include_answers=is_admin)


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Replace course content",
)
async def update_course(
    course_id: UUID,
    data: UpdateCourseRequest,
    course_service: CourseServiceDep,
    _user: AdminUser,
) -> CourseResponse:
    """Replace course metadata and content (ADMIN only)."""
    try:
        course = await course_service.update_course(course_id, data)
    except AppError as e:
        raise handle_course_error(e) from e
    return CourseResponse.from_entity(course, include_answers=True)
