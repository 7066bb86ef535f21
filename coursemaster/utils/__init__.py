"""Utility modules for CourseMaster API."""

from coursemaster.utils.numbers import percentage


__all__ = ["percentage"]
