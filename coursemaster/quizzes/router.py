"""Quiz API endpoints.

Provides routes for:
- Quiz submission and grading (enrolled students)
- My attempts
- Course attempts review (admin)
"""

from uuid import UUID

from fastapi import APIRouter, Query

from coursemaster.auth.dependencies import AdminUser, CurrentUser
from coursemaster.core.exceptions import AppError

from .dependencies import QuizServiceDep, handle_quiz_error
from .schemas import (
    GradedAnswerResponse,
    QuizAttemptListResponse,
    QuizAttemptResponse,
    QuizResultResponse,
    QuizSubmissionResponse,
    SubmitQuizRequest,
)


router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])
admin_router = APIRouter(prefix="/v1/admin/quizzes", tags=["admin"])

PASSED_MESSAGE = "Congratulations! You passed the quiz!"
FAILED_MESSAGE = "Quiz completed. Keep practicing!"


@router.post(
    "",
    response_model=QuizSubmissionResponse,
    summary="Submit quiz answers",
)
async def submit_quiz(
    data: SubmitQuizRequest,
    quiz_service: QuizServiceDep,
    user: CurrentUser,
) -> QuizSubmissionResponse:
    """Grade a quiz submission and store the attempt."""
    try:
        attempt = await quiz_service.submit_quiz_attempt(
            student_id=user.id,
            course_id=data.course_id,
            quiz_id=data.quiz_id,
            module_id=data.module_id,
            answers=[answer.to_submitted() for answer in data.answers],
            started_at=data.started_at,
        )
    except AppError as e:
        raise handle_quiz_error(e) from e

    return QuizSubmissionResponse(
        message=PASSED_MESSAGE if attempt.passed else FAILED_MESSAGE,
        attempt_id=attempt.id,
        result=QuizResultResponse(
            score=attempt.score,
            max_score=attempt.max_score,
            percentage=attempt.percentage,
            passed=attempt.passed,
            passing_score=attempt.passing_score,
            time_spent=attempt.time_spent,
            answers=[GradedAnswerResponse.from_entity(a) for a in attempt.answers],
        ),
    )


@router.get(
    "",
    response_model=QuizAttemptListResponse,
    summary="List my quiz attempts",
)
async def list_my_attempts(
    quiz_service: QuizServiceDep,
    user: CurrentUser,
    course_id: UUID | None = None,
    quiz_id: UUID | None = None,
) -> QuizAttemptListResponse:
    """List my attempts, newest first, optionally for one course or quiz."""
    attempts = await quiz_service.list_student_attempts(user.id, course_id, quiz_id)
    return QuizAttemptListResponse(
        items=[QuizAttemptResponse.from_entity(a) for a in attempts],
        total=len(attempts),
    )


@admin_router.get(
    "",
    response_model=QuizAttemptListResponse,
    summary="List course quiz attempts (admin)",
)
async def list_course_attempts(
    quiz_service: QuizServiceDep,
    _admin: AdminUser,
    course_id: UUID = Query(..., description="Course UUID"),
    passed: bool | None = None,
) -> QuizAttemptListResponse:
    """List every attempt for a course, optionally only passed or failed ones."""
    attempts = await quiz_service.list_course_attempts(course_id, passed)
    return QuizAttemptListResponse(
        items=[QuizAttemptResponse.from_entity(a) for a in attempts],
        total=len(attempts),
    )
