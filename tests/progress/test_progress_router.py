"""Tests for enrollment and progress endpoints."""

from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from coursemaster.auth.permissions import UserRole
from coursemaster.main import app
from coursemaster.progress.dependencies import get_progress_service
from coursemaster.progress.models import Enrollment
from coursemaster.progress.schemas import EnrollmentStats, EnrollmentStatusFilter
from coursemaster.progress.service import (
    AlreadyEnrolledError,
    EnrollmentOwnershipError,
    NotEnrolledError,
    ProgressConflictError,
)


@pytest.fixture
def progress_service() -> Mock:
    service = Mock()
    service.enroll = AsyncMock()
    service.list_student_enrollments = AsyncMock(return_value=[])
    service.get_progress = AsyncMock()
    service.record_lesson_completion = AsyncMock()
    service.list_course_enrollments = AsyncMock(
        return_value=([], EnrollmentStats(total=0, active=0, completed=0))
    )
    app.dependency_overrides[get_progress_service] = lambda: service
    return service


def completion_payload() -> dict[str, str]:
    return {"module_id": str(uuid4()), "lesson_id": str(uuid4())}


class TestEnroll:
    def test_enroll(
        self, client: TestClient, progress_service: Mock, student_id: UUID, auth_headers
    ):
        course_id = uuid4()
        progress_service.enroll.return_value = Enrollment(
            student_id, course_id, total_lessons=9
        )

        response = client.post(
            "/v1/enrollments",
            json={"course_id": str(course_id)},
            headers=auth_headers(student_id),
        )

        assert response.status_code == 201
        assert response.json()["total_lessons"] == 9
        progress_service.enroll.assert_awaited_once_with(student_id, course_id)

    def test_enroll_twice(
        self, client: TestClient, progress_service: Mock, student_id: UUID, auth_headers
    ):
        progress_service.enroll.side_effect = AlreadyEnrolledError

        response = client.post(
            "/v1/enrollments",
            json={"course_id": str(uuid4())},
            headers=auth_headers(student_id),
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Already enrolled in this course"

    def test_enroll_requires_token(self, client: TestClient, progress_service: Mock):
        response = client.post("/v1/enrollments", json={"course_id": str(uuid4())})

        assert response.status_code == 401


class TestRecordLessonCompletion:
    def test_progress_updated(
        self, client: TestClient, progress_service: Mock, student_id: UUID, auth_headers
    ):
        enrollment = Enrollment(
            student_id,
            uuid4(),
            completed_lessons=2,
            total_lessons=9,
            overall_progress=22,
        )
        progress_service.record_lesson_completion.return_value = (enrollment, True)

        response = client.post(
            f"/v1/enrollments/{enrollment.id}/progress",
            json=completion_payload(),
            headers=auth_headers(student_id),
        )

        assert response.status_code == 200
        assert response.json() == {
            "completed_lessons": 2,
            "total_lessons": 9,
            "overall_progress": 22,
            "is_completed": False,
            "message": "Progress updated successfully",
        }

    def test_lesson_already_completed(
        self, client: TestClient, progress_service: Mock, student_id: UUID, auth_headers
    ):
        enrollment = Enrollment(student_id, uuid4(), completed_lessons=1, total_lessons=9)
        progress_service.record_lesson_completion.return_value = (enrollment, False)

        response = client.post(
            f"/v1/enrollments/{enrollment.id}/progress",
            json=completion_payload(),
            headers=auth_headers(student_id),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Lesson already completed"

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (EnrollmentOwnershipError, 401),
            (NotEnrolledError, 403),
            (ProgressConflictError, 409),
        ],
    )
    def test_error_mapping(
        self,
        client: TestClient,
        progress_service: Mock,
        student_id: UUID,
        auth_headers,
        error,
        status_code: int,
    ):
        progress_service.record_lesson_completion.side_effect = error

        response = client.post(
            f"/v1/enrollments/{uuid4()}/progress",
            json=completion_payload(),
            headers=auth_headers(student_id),
        )

        assert response.status_code == status_code

    def test_invalid_token(self, client: TestClient, progress_service: Mock):
        response = client.post(
            f"/v1/enrollments/{uuid4()}/progress",
            json=completion_payload(),
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"


class TestGetProgress:
    def test_returns_progress_tree(
        self, client: TestClient, progress_service: Mock, student_id: UUID, auth_headers
    ):
        enrollment = Enrollment(student_id, uuid4(), total_lessons=3)
        enrollment.complete_lesson(uuid4(), uuid4(), enrollment.enrolled_at)
        progress_service.get_progress.return_value = enrollment

        response = client.get(
            f"/v1/enrollments/{enrollment.id}/progress",
            headers=auth_headers(student_id),
        )

        assert response.status_code == 200
        progress = response.json()["progress"]
        assert len(progress) == 1
        assert progress[0]["lessons"][0]["completed"] is True


class TestAdminEnrollments:
    def test_students_are_forbidden(
        self, client: TestClient, progress_service: Mock, student_id: UUID, auth_headers
    ):
        response = client.get(
            "/v1/admin/enrollments",
            params={"course_id": str(uuid4())},
            headers=auth_headers(student_id),
        )

        assert response.status_code == 403

    def test_status_filter(
        self, client: TestClient, progress_service: Mock, admin_id: UUID, auth_headers
    ):
        course_id = uuid4()

        response = client.get(
            "/v1/admin/enrollments",
            params={"course_id": str(course_id), "status": "completed"},
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 200
        assert response.json()["stats"] == {"total": 0, "active": 0, "completed": 0}
        progress_service.list_course_enrollments.assert_awaited_once_with(
            course_id, EnrollmentStatusFilter.COMPLETED
        )
