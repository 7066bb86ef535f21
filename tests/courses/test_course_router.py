"""Tests for course catalog endpoints."""

from collections.abc import Callable
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from coursemaster.auth.permissions import UserRole
from coursemaster.courses.dependencies import get_course_service
from coursemaster.courses.models import Course
from coursemaster.courses.service import CourseNotFoundError
from coursemaster.main import app


@pytest.fixture
def course_service() -> Mock:
    service = Mock()
    service.create_course = AsyncMock()
    service.update_course = AsyncMock()
    service.get_course = AsyncMock(return_value=None)
    service.list_published_courses = AsyncMock(return_value=[])
    app.dependency_overrides[get_course_service] = lambda: service
    return service


COURSE_PAYLOAD = {
    "title": "Clinical Pharmacology",
    "is_published": True,
    "modules": [
        {"title": "Basics", "lessons": [{"title": "Intro", "duration": 12}]}
    ],
    "quizzes": [
        {
            "title": "Checkpoint",
            "questions": [
                {"question": "2 + 2?", "options": ["3", "4"], "correct_answer": 1}
            ],
        }
    ],
}


class TestCreateCourse:
    def test_requires_token(self, client: TestClient, course_service: Mock):
        response = client.post("/v1/courses", json=COURSE_PAYLOAD)

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_students_are_forbidden(
        self, client: TestClient, course_service: Mock, student_id: UUID, auth_headers
    ):
        response = client.post(
            "/v1/courses", json=COURSE_PAYLOAD, headers=auth_headers(student_id)
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Admin access required"
        course_service.create_course.assert_not_called()

    def test_admin_creates_course(
        self,
        client: TestClient,
        course_service: Mock,
        admin_id: UUID,
        auth_headers,
        build_course: Callable[..., Course],
    ):
        course = build_course()
        course_service.create_course.return_value = course

        response = client.post(
            "/v1/courses",
            json=COURSE_PAYLOAD,
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["total_lessons"] == 9
        assert data["quizzes"][0]["questions"][0]["correct_answer"] == 1
        _request, instructor_id = course_service.create_course.await_args.args
        assert instructor_id == admin_id

    def test_rejects_out_of_range_correct_answer(
        self, client: TestClient, course_service: Mock, admin_id: UUID, auth_headers
    ):
        payload = {
            "title": "Broken quiz",
            "quizzes": [
                {
                    "title": "Q",
                    "questions": [
                        {"question": "?", "options": ["a", "b"], "correct_answer": 2}
                    ],
                }
            ],
        }

        response = client.post(
            "/v1/courses", json=payload, headers=auth_headers(admin_id, UserRole.ADMIN)
        )

        assert response.status_code == 422


class TestGetCourse:
    def test_hides_answers_from_students(
        self,
        client: TestClient,
        course_service: Mock,
        student_id: UUID,
        auth_headers,
        build_course: Callable[..., Course],
    ):
        course = build_course()
        course_service.get_course.return_value = course

        response = client.get(f"/v1/courses/{course.id}", headers=auth_headers(student_id))

        assert response.status_code == 200
        questions = response.json()["quizzes"][0]["questions"]
        assert all(q["correct_answer"] is None for q in questions)

    def test_anonymous_can_read_published_course(
        self, client: TestClient, course_service: Mock, build_course
    ):
        course = build_course()
        course_service.get_course.return_value = course

        response = client.get(f"/v1/courses/{course.id}")

        assert response.status_code == 200
        assert response.json()["id"] == str(course.id)

    def test_draft_is_hidden_from_students(
        self, client: TestClient, course_service: Mock, build_course
    ):
        course = build_course(is_published=False)
        course_service.get_course.return_value = course

        response = client.get(f"/v1/courses/{course.id}")

        assert response.status_code == 404
        assert response.json()["message"] == "Course not found"

    def test_admin_sees_draft_with_answers(
        self,
        client: TestClient,
        course_service: Mock,
        admin_id: UUID,
        auth_headers,
        build_course,
    ):
        course = build_course(is_published=False)
        course_service.get_course.return_value = course

        response = client.get(
            f"/v1/courses/{course.id}", headers=auth_headers(admin_id, UserRole.ADMIN)
        )

        assert response.status_code == 200
        assert response.json()["quizzes"][0]["questions"][0]["correct_answer"] == 1

    def test_missing_course(self, client: TestClient, course_service: Mock):
        response = client.get(f"/v1/courses/{uuid4()}")

        assert response.status_code == 404


class TestUpdateCourse:
    def test_update_missing_course(
        self, client: TestClient, course_service: Mock, admin_id: UUID, auth_headers
    ):
        course_service.update_course.side_effect = CourseNotFoundError

        response = client.put(
            f"/v1/courses/{uuid4()}",
            json=COURSE_PAYLOAD,
            headers=auth_headers(admin_id, UserRole.ADMIN),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Course not found"


class TestListCourses:
    def test_list_is_public(self, client: TestClient, course_service: Mock):
        response = client.get("/v1/courses")

        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0}
