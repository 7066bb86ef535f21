"""Tests for quiz grading."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from coursemaster.courses.models import Course, Question, Quiz
from coursemaster.quizzes.grading import (
    UNANSWERED,
    SubmittedAnswer,
    grade_quiz,
    time_spent_seconds,
)


@pytest.fixture
def quiz(build_course: Callable[..., Course]) -> Quiz:
    """Three questions worth 10 points each, correct option 1, passing 70."""
    return build_course().quizzes[0]


def answers_for(quiz: Quiz, options: list[int]) -> list[SubmittedAnswer]:
    return [
        SubmittedAnswer(question.id, option)
        for question, option in zip(quiz.questions, options, strict=True)
    ]


class TestGradeQuiz:
    """Tests for grade_quiz."""

    def test_two_of_three_correct_fails(self, quiz: Quiz):
        """20 of 30 points rounds to 67%, below a passing score of 70."""
        result = grade_quiz(quiz, answers_for(quiz, [1, 1, 0]))

        assert result.score == 20
        assert result.max_score == 30
        assert result.percentage == 67
        assert result.passed is False
        assert result.passing_score == 70
        assert [a.is_correct for a in result.answers] == [True, True, False]
        assert [a.points for a in result.answers] == [10, 10, 0]

    def test_all_correct_passes(self, quiz: Quiz):
        result = grade_quiz(quiz, answers_for(quiz, [1, 1, 1]))

        assert result.score == 30
        assert result.percentage == 100
        assert result.passed is True

    def test_passing_score_is_inclusive(self):
        questions = [
            Question(question=str(i), options=["a", "b"], correct_answer=0, points=1)
            for i in range(10)
        ]
        quiz = Quiz(title="Exact", questions=questions, passing_score=70)
        options = [0] * 7 + [1] * 3

        result = grade_quiz(quiz, answers_for(quiz, options))

        assert result.percentage == 70
        assert result.passed is True

    def test_unanswered_question_counts_toward_max(self, quiz: Quiz):
        """An unanswered question scores 0 but still counts in max_score."""
        result = grade_quiz(quiz, answers_for(quiz, [1, 1, UNANSWERED]))

        assert result.score == 20
        assert result.max_score == 30
        assert result.answers[2].selected_option == UNANSWERED
        assert result.answers[2].is_correct is False

    def test_out_of_range_option_is_wrong(self, quiz: Quiz):
        result = grade_quiz(quiz, answers_for(quiz, [1, 1, 7]))

        assert result.score == 20
        assert result.answers[2].is_correct is False

    def test_unknown_question_is_ignored_in_max(self, quiz: Quiz):
        """Answers to questions the quiz lacks score 0 and add nothing to max."""
        answers = [
            *answers_for(quiz, [1, 1, 1]),
            SubmittedAnswer(uuid4(), 1),
        ]

        result = grade_quiz(quiz, answers)

        assert result.score == 30
        assert result.max_score == 30
        assert result.percentage == 100
        assert len(result.answers) == 4
        assert result.answers[3].points == 0

    def test_no_answers(self, quiz: Quiz):
        """Nothing submitted means max_score 0 and percentage 0."""
        result = grade_quiz(quiz, [])

        assert result.score == 0
        assert result.max_score == 0
        assert result.percentage == 0
        assert result.passed is False

    def test_zero_passing_score_passes_empty_submission(self):
        quiz = Quiz(title="Survey", passing_score=0)

        assert grade_quiz(quiz, []).passed is True

    def test_grading_is_deterministic(self, quiz: Quiz):
        answers = answers_for(quiz, [1, 0, 1])

        first = grade_quiz(quiz, answers)
        second = grade_quiz(quiz, answers)

        assert first.score == second.score
        assert first.answers == second.answers


class TestTimeSpent:
    def test_whole_seconds(self):
        started = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

        assert time_spent_seconds(started, started + timedelta(minutes=5)) == 300

    def test_start_in_the_future_is_clamped(self):
        now = datetime.now(UTC)

        assert time_spent_seconds(now + timedelta(minutes=1), now) == 0

    def test_naive_start_is_utc(self):
        completed = datetime(2026, 3, 1, 12, 1, tzinfo=UTC)
        started = datetime(2026, 3, 1, 12, 0)

        assert time_spent_seconds(started, completed) == 60
