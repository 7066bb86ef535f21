"""Enrollment and lesson progress module.

Provides:
- Course enrollment (one per student and course)
- Lesson completion with full-rescan aggregates
- Optimistic-concurrency writes of the progress document
"""

from .models import (
    PROGRESS_TABLES_CQL,
    Enrollment,
    LessonProgress,
    ModuleProgress,
)


__all__ = [
    "PROGRESS_TABLES_CQL",
    "Enrollment",
    "LessonProgress",
    "ModuleProgress",
]
