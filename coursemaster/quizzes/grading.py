"""Quiz grading.

``grade_quiz`` is a pure function of the quiz definition and the submitted
answers: same inputs, same result, no I/O.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from coursemaster.courses.models import Quiz
from coursemaster.utils import percentage

from .models import GradedAnswer, ensure_utc_aware


# Sent by clients for questions left blank
UNANSWERED = -1


class SubmittedAnswer(NamedTuple):
    question_id: UUID
    selected_option: int


class GradingResult(NamedTuple):
    score: int
    max_score: int
    percentage: int
    passed: bool
    passing_score: int
    answers: list[GradedAnswer]


def grade_answer(quiz: Quiz, answer: SubmittedAnswer) -> tuple[GradedAnswer, int]:
    """Grade one answer.

    Returns:
        Tuple of (graded answer, points the question contributes to the
        maximum score). Unknown questions contribute nothing.
    """
    question = quiz.find_question(answer.question_id)
    if question is None:
        return (
            GradedAnswer(
                question_id=answer.question_id,
                selected_option=answer.selected_option,
                is_correct=False,
                points=0,
            ),
            0,
        )

    is_correct = (
        question.has_option(answer.selected_option)
        and answer.selected_option == question.correct_answer
    )
    graded = GradedAnswer(
        question_id=question.id,
        selected_option=answer.selected_option,
        is_correct=is_correct,
        points=question.points if is_correct else 0,
    )
    return graded, question.points


def grade_quiz(quiz: Quiz, answers: Iterable[SubmittedAnswer]) -> GradingResult:
    """Score a set of answers against a quiz.

    Each submitted answer is graded on its own, in submission order. Answers
    to questions the quiz does not contain, unanswered questions and option
    indexes outside the question's options are incorrect and score 0.
    """
    graded_answers: list[GradedAnswer] = []
    score = 0
    max_score = 0

    for answer in answers:
        graded, available = grade_answer(quiz, answer)
        graded_answers.append(graded)
        score += graded.points
        max_score += available

    pct = percentage(score, max_score)
    return GradingResult(
        score=score,
        max_score=max_score,
        percentage=pct,
        passed=pct >= quiz.passing_score,
        passing_score=quiz.passing_score,
        answers=graded_answers,
    )


def time_spent_seconds(started_at: datetime, completed_at: datetime) -> int:
    """Whole seconds between start and completion, clamped at 0.

    Naive timestamps are taken as UTC.
    """
    elapsed = ensure_utc_aware(completed_at) - ensure_utc_aware(started_at)
    return max(0, round(elapsed.total_seconds()))