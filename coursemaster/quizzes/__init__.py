"""Quiz grading and attempt history."""

from .grading import SubmittedAnswer, grade_quiz
from .models import QUIZZES_TABLES_CQL, GradedAnswer, QuizAttempt


__all__ = [
    "QUIZZES_TABLES_CQL",
    "GradedAnswer",
    "QuizAttempt",
    "SubmittedAnswer",
    "grade_quiz",
]
