"""Tests for assignment endpoints."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from coursemaster.assignments.dependencies import get_assignment_service
from coursemaster.assignments.models import AssignmentSubmission, SubmissionStatus
from coursemaster.assignments.service import SubmissionNotFoundError
from coursemaster.auth.permissions import UserRole
from coursemaster.core.exceptions import ValidationError
from coursemaster.main import app
from coursemaster.progress.service import NotEnrolledError


@pytest.fixture
def assignment_service() -> Mock:
    service = Mock()
    service.upsert_submission = AsyncMock()
    service.list_student_submissions = AsyncMock(return_value=[])
    service.list_course_submissions = AsyncMock(return_value=[])
    service.require_submission = AsyncMock()
    service.grade_submission = AsyncMock()
    app.dependency_overrides[get_assignment_service] = lambda: service
    return service


def payload(**overrides) -> dict:
    data = {
        "course_id": str(uuid4()),
        "assignment_id": str(uuid4()),
        "submission_type": "link",
        "content": "https://example.com/work",
    }
    data.update(overrides)
    return data


def stored(student_id: UUID) -> AssignmentSubmission:
    return AssignmentSubmission(
        student_id=student_id,
        course_id=uuid4(),
        assignment_id=uuid4(),
        submission_type="link",
        content="https://example.com/work",
    )


class TestSubmitAssignment:
    def test_first_submission_is_created(
        self,
        client: TestClient,
        assignment_service: Mock,
        student_id: UUID,
        auth_headers,
    ):
        assignment_service.upsert_submission.return_value = (stored(student_id), True)

        response = client.post(
            "/v1/assignments", json=payload(), headers=auth_headers(student_id)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Assignment submitted successfully"
        assert data["submission"]["status"] == "pending"

    def test_resubmission_returns_ok(
        self,
        client: TestClient,
        assignment_service: Mock,
        student_id: UUID,
        auth_headers,
    ):
        assignment_service.upsert_submission.return_value = (
            stored(student_id),
            False,
        )

        response = client.post(
            "/v1/assignments", json=payload(), headers=auth_headers(student_id)
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Assignment resubmitted successfully"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"content": ""},
            {"submission_type": "file"},
        ],
    )
    def test_invalid_payload(
        self,
        client: TestClient,
        assignment_service: Mock,
        student_id: UUID,
        auth_headers,
        overrides: dict,
    ):
        response = client.post(
            "/v1/assignments",
            json=payload(**overrides),
            headers=auth_headers(student_id),
        )

        assert response.status_code == 422
        assignment_service.upsert_submission.assert_not_called()

    def test_not_enrolled(
        self,
        client: TestClient,
        assignment_service: Mock,
        student_id: UUID,
        auth_headers,
    ):
        assignment_service.upsert_submission.side_effect = NotEnrolledError

        response = client.post(
            "/v1/assignments", json=payload(), headers=auth_headers(student_id)
        )

        assert response.status_code == 403


class TestAdminAssignments:
    def test_grade_out_of_range(
        self,
        client: TestClient,
        assignment_service: Mock,
        admin_id: UUID,
        auth_headers,
    ):
        assignment_service.grade_submission.side_effect = ValidationError(
            "Grade must be between 0 and 100"
        )

        response = client.patch(
            f"/v1/admin/assignments/{uuid4()}",
            json={"grade": 150},
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 422
        assert response.json()["message"] == "Grade must be between 0 and 100"

    def test_grade_submission(
        self,
        client: TestClient,
        assignment_service: Mock,
        admin_id: UUID,
        auth_headers,
    ):
        submission = stored(uuid4())
        submission.apply_grade(88, "Solid", admin_id, datetime.now(UTC))
        assignment_service.grade_submission.return_value = submission

        response = client.patch(
            f"/v1/admin/assignments/{submission.id}",
            json={"grade": 88, "feedback": "Solid"},
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Assignment graded successfully"
        assert data["submission"]["grade"] == 88
        assert data["submission"]["graded_by"] == str(admin_id)

    def test_students_cannot_grade(
        self,
        client: TestClient,
        assignment_service: Mock,
        student_id: UUID,
        auth_headers,
    ):
        response = client.patch(
            f"/v1/admin/assignments/{uuid4()}",
            json={"grade": 100},
            headers=auth_headers(student_id),
        )

        assert response.status_code == 403
        assignment_service.grade_submission.assert_not_called()

    def test_missing_submission(
        self,
        client: TestClient,
        assignment_service: Mock,
        admin_id: UUID,
        auth_headers,
    ):
        assignment_service.require_submission.side_effect = SubmissionNotFoundError

        response = client.get(
            f"/v1/admin/assignments/{uuid4()}",
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Submission not found"

    def test_list_by_status(
        self,
        client: TestClient,
        assignment_service: Mock,
        admin_id: UUID,
        auth_headers,
    ):
        course_id = uuid4()

        response = client.get(
            "/v1/admin/assignments",
            params={"course_id": str(course_id), "status": "graded"},
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 200
        assignment_service.list_course_submissions.assert_awaited_once_with(
            course_id, SubmissionStatus.GRADED
        )
