"""Shared test fixtures."""

import os
import tempfile
from collections.abc import Callable, Iterator
from uuid import UUID, uuid4

import pytest


# Settings are cached on first import, so the environment must be set first
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="coursemaster-logs-"))
os.environ.setdefault("LOG_FORMAT", "json")

from fastapi.testclient import TestClient  # noqa: E402

from coursemaster.auth.permissions import UserRole  # noqa: E402
from coursemaster.auth.security import create_access_token  # noqa: E402
from coursemaster.courses.models import (  # noqa: E402
    Assignment,
    Course,
    Lesson,
    Module,
    Question,
    Quiz,
)
from coursemaster.main import app  # noqa: E402


@pytest.fixture
def client() -> Iterator[TestClient]:
    """HTTP client without lifespan (no Cassandra or Redis connections)."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def admin_id() -> UUID:
    return uuid4()


def make_token(user_id: UUID, role: UserRole) -> str:
    return create_access_token(
        {"sub": str(user_id), "email": f"{role.value}@example.com", "role": role.value}
    )


@pytest.fixture
def auth_headers() -> Callable[[UUID, UserRole], dict[str, str]]:
    """Build an Authorization header for a user id and role."""

    def _headers(user_id: UUID, role: UserRole = UserRole.STUDENT) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id, role)}"}

    return _headers


@pytest.fixture
def build_course() -> Callable[..., Course]:
    """Build a course with modules of lessons, one quiz and one assignment.

    The quiz has three questions worth 10 points each (correct option 1)
    and a passing score of 70. The assignment is scored out of 100.
    """

    def _build(
        modules: int = 3, lessons_per_module: int = 3, is_published: bool = True
    ) -> Course:
        course = Course(
            title="Clinical Pharmacology",
            description="Dosage and interactions",
            is_published=is_published,
            instructor_id=uuid4(),
            modules=[
                Module(
                    title=f"Module {m + 1}",
                    order=m,
                    lessons=[
                        Lesson(title=f"Lesson {m + 1}.{n + 1}", duration=10, order=n)
                        for n in range(lessons_per_module)
                    ],
                )
                for m in range(modules)
            ],
            quizzes=[
                Quiz(
                    title="Checkpoint",
                    passing_score=70,
                    questions=[
                        Question(
                            question=f"Question {i + 1}",
                            options=["a", "b", "c"],
                            correct_answer=1,
                            points=10,
                        )
                        for i in range(3)
                    ],
                )
            ],
            assignments=[Assignment(title="Case study", max_score=100)],
        )
        course.recompute_totals()
        return course

    return _build
