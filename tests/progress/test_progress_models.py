"""Tests for the enrollment progress document and its aggregates."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from unittest.mock import Mock
from uuid import uuid4

from coursemaster.courses.models import Course
from coursemaster.progress.models import Enrollment


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def module_lessons(course: Course) -> dict:
    return {m.id: m.lesson_ids for m in course.modules}


def complete(enrollment: Enrollment, course: Course, lessons, now=NOW) -> bool:
    """Complete (module, lesson) pairs and recompute, like the service does."""
    completed_course = False
    for module, lesson in lessons:
        enrollment.complete_lesson(module.id, lesson.id, now)
        completed_course |= enrollment.recompute(
            course.total_lessons, module_lessons(course), now
        )
    return completed_course


def all_lessons(course: Course):
    return [(m, lesson) for m in course.modules for lesson in m.lessons]


class TestAggregates:
    """Tests for Enrollment.recompute."""

    def test_two_of_nine_lessons(self, build_course: Callable[..., Course]):
        """Two completed lessons out of nine should round to 22 percent."""
        course = build_course(modules=3, lessons_per_module=3)
        enrollment = Enrollment(uuid4(), course.id, total_lessons=9)

        became_completed = complete(enrollment, course, all_lessons(course)[:2])

        assert became_completed is False
        assert enrollment.completed_lessons == 2
        assert enrollment.overall_progress == 22
        assert enrollment.is_completed is False
        assert enrollment.completed_at is None
        assert enrollment.progress[0].completed is False

    def test_all_lessons_complete_the_course(
        self, build_course: Callable[..., Course]
    ):
        """Completing all nine lessons should complete the course once."""
        course = build_course(modules=3, lessons_per_module=3)
        enrollment = Enrollment(uuid4(), course.id, total_lessons=9)

        became_completed = complete(enrollment, course, all_lessons(course))

        assert became_completed is True
        assert enrollment.completed_lessons == 9
        assert enrollment.overall_progress == 100
        assert enrollment.is_completed is True
        assert enrollment.completed_at == NOW
        assert all(module.completed for module in enrollment.progress)

    def test_module_flag_when_its_lessons_are_done(
        self, build_course: Callable[..., Course]
    ):
        course = build_course(modules=2, lessons_per_module=2)
        enrollment = Enrollment(uuid4(), course.id, total_lessons=4)

        complete(enrollment, course, all_lessons(course)[:2])

        first = enrollment.find_module_progress(course.modules[0].id)
        assert first.completed is True
        assert enrollment.overall_progress == 50

    def test_completion_is_a_one_way_ratchet(
        self, build_course: Callable[..., Course]
    ):
        """New lessons after completion should lower the percentage only."""
        course = build_course(modules=1, lessons_per_module=3)
        enrollment = Enrollment(uuid4(), course.id, total_lessons=3)
        complete(enrollment, course, all_lessons(course))

        later = NOW + timedelta(days=30)
        became_completed = enrollment.recompute(4, module_lessons(course), later)

        assert became_completed is False
        assert enrollment.overall_progress == 75
        assert enrollment.is_completed is True
        assert enrollment.completed_at == NOW

    def test_progress_is_capped_at_one_hundred(self):
        """Lessons no longer in the course still count but never exceed 100."""
        enrollment = Enrollment(uuid4(), uuid4(), total_lessons=1)
        module_id = uuid4()
        enrollment.complete_lesson(module_id, uuid4(), NOW)
        enrollment.complete_lesson(module_id, uuid4(), NOW)

        enrollment.recompute(1, {}, NOW)

        assert enrollment.completed_lessons == 2
        assert enrollment.overall_progress == 100

    def test_empty_course_never_completes(self):
        enrollment = Enrollment(uuid4(), uuid4())

        assert enrollment.recompute(0, {}, NOW) is False
        assert enrollment.overall_progress == 0
        assert enrollment.is_completed is False

    def test_unlisted_module_is_never_flagged(self):
        enrollment = Enrollment(uuid4(), uuid4(), total_lessons=5)
        module_id = uuid4()
        enrollment.complete_lesson(module_id, uuid4(), NOW)

        enrollment.recompute(5, {module_id: []}, NOW)

        assert enrollment.progress[0].completed is False


class TestCompleteLesson:
    def test_creates_entries_lazily(self):
        enrollment = Enrollment(uuid4(), uuid4())
        module_id, lesson_id = uuid4(), uuid4()

        assert enrollment.is_lesson_completed(module_id, lesson_id) is False

        enrollment.complete_lesson(module_id, lesson_id, NOW)

        assert len(enrollment.progress) == 1
        assert enrollment.is_lesson_completed(module_id, lesson_id) is True

    def test_second_completion_keeps_timestamp(self):
        enrollment = Enrollment(uuid4(), uuid4())
        module_id, lesson_id = uuid4(), uuid4()

        enrollment.complete_lesson(module_id, lesson_id, NOW)
        lesson = enrollment.complete_lesson(
            module_id, lesson_id, NOW + timedelta(hours=1)
        )

        assert lesson.completed_at == NOW
        assert len(enrollment.progress[0].lessons) == 1


class TestSerialization:
    def test_row_round_trip(self, build_course: Callable[..., Course]):
        course = build_course(modules=1, lessons_per_module=2)
        enrollment = Enrollment(uuid4(), course.id, total_lessons=2, version=4)
        complete(enrollment, course, all_lessons(course)[:1])

        row = Mock(
            id=enrollment.id,
            student_id=enrollment.student_id,
            course_id=enrollment.course_id,
            enrolled_at=enrollment.enrolled_at.replace(tzinfo=None),
            progress=enrollment.progress_json(),
            completed_lessons=enrollment.completed_lessons,
            total_lessons=enrollment.total_lessons,
            overall_progress=enrollment.overall_progress,
            is_completed=False,
            completed_at=None,
            updated_at=None,
            version=4,
        )
        restored = Enrollment.from_row(row)

        assert restored.version == 4
        assert restored.overall_progress == 50
        assert restored.enrolled_at.tzinfo is not None
        lesson_id = course.modules[0].lessons[0].id
        assert restored.is_lesson_completed(course.modules[0].id, lesson_id)
        assert restored.progress[0].lessons[0].completed_at == NOW
