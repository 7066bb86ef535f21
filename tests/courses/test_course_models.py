"""Tests for course content entities."""

from collections.abc import Callable
from decimal import Decimal
from unittest.mock import Mock
from uuid import uuid4

from coursemaster.courses.models import (
    Course,
    CourseStatus,
    Lesson,
    Module,
    Question,
    generate_slug,
)


class TestRecomputeTotals:
    """Tests for Course.recompute_totals."""

    def test_counts_lessons_and_duration(self, build_course: Callable[..., Course]):
        """Should count every lesson and sum their durations."""
        course = build_course(modules=3, lessons_per_module=3)

        assert course.total_lessons == 9
        assert course.total_duration == 90

    def test_sorts_modules_and_lessons_by_order(self):
        """Should order modules and lessons by their order field."""
        course = Course(
            title="Ordering",
            modules=[
                Module(
                    title="Second",
                    order=2,
                    lessons=[Lesson(title="b", order=1), Lesson(title="a", order=0)],
                ),
                Module(title="First", order=1),
            ],
        )

        course.recompute_totals()

        assert [m.title for m in course.modules] == ["First", "Second"]
        assert [lesson.title for lesson in course.modules[1].lessons] == ["a", "b"]
        assert course.total_lessons == 2

    def test_empty_course(self):
        course = Course(title="Empty")
        course.recompute_totals()

        assert course.total_lessons == 0
        assert course.total_duration == 0


class TestCourseLookups:
    def test_find_quiz_and_assignment(self, build_course: Callable[..., Course]):
        course = build_course()
        quiz = course.quizzes[0]
        assignment = course.assignments[0]

        assert course.find_quiz(quiz.id) is quiz
        assert course.find_assignment(assignment.id) is assignment
        assert course.find_quiz(uuid4()) is None
        assert course.find_assignment(uuid4()) is None

    def test_lessons_by_module(self, build_course: Callable[..., Course]):
        course = build_course(modules=2, lessons_per_module=2)

        mapping = course.lessons_by_module()

        assert list(mapping) == [module.id for module in course.modules]
        for module in course.modules:
            assert mapping[module.id] == [lesson.id for lesson in module.lessons]

    def test_status_follows_published_flag(self):
        assert Course(title="Live", is_published=True).status == CourseStatus.PUBLISHED
        assert Course(title="Wip", is_published=False).status == CourseStatus.DRAFT


class TestQuestion:
    def test_has_option(self):
        question = Question(question="?", options=["a", "b"], correct_answer=0)

        assert question.has_option(0) is True
        assert question.has_option(1) is True
        assert question.has_option(2) is False
        assert question.has_option(-1) is False


class TestSerialization:
    """Tests for cache and row round trips."""

    def test_cache_round_trip_keeps_content(
        self, build_course: Callable[..., Course]
    ):
        """Should rebuild the same course from its cached form."""
        course = build_course()
        course.price = Decimal("49.90")

        restored = Course.from_cache(course.to_cache())

        assert restored.id == course.id
        assert restored.price == Decimal("49.90")
        assert restored.instructor_id == course.instructor_id
        assert restored.created_at == course.created_at
        assert restored.total_lessons == 9
        assert [m.lesson_ids for m in restored.modules] == [
            m.lesson_ids for m in course.modules
        ]
        assert restored.quizzes[0].questions[0].correct_answer == 1
        assert restored.assignments[0].max_score == 100

    def test_from_row_parses_content_column(
        self, build_course: Callable[..., Course]
    ):
        """Should parse the JSON content column back into entities."""
        course = build_course(modules=1, lessons_per_module=2)
        row = Mock(
            id=course.id,
            title=course.title,
            slug=course.slug,
            description=course.description,
            thumbnail_url=None,
            price=None,
            is_published=True,
            instructor_id=course.instructor_id,
            content=course.content_json(),
            total_lessons=2,
            total_duration=20,
            created_at=course.created_at.replace(tzinfo=None),
            updated_at=None,
        )

        restored = Course.from_row(row)

        assert restored.created_at.tzinfo is not None
        assert restored.modules[0].lesson_ids == course.modules[0].lesson_ids
        assert restored.quizzes[0].passing_score == 70

    def test_from_row_without_content(self):
        row = Mock(
            id=uuid4(),
            title="Bare",
            slug="bare",
            description=None,
            thumbnail_url=None,
            price=None,
            is_published=False,
            instructor_id=None,
            content=None,
            total_lessons=None,
            total_duration=None,
            created_at=None,
            updated_at=None,
        )

        course = Course.from_row(row)

        assert course.modules == []
        assert course.quizzes == []
        assert course.assignments == []
        assert course.total_lessons == 0


class TestGenerateSlug:
    def test_generate_slug(self):
        assert generate_slug("Introdução à Química 101") == "introducao-a-quimica-101"
        assert generate_slug("  Hello,  World!  ") == "hello-world"
