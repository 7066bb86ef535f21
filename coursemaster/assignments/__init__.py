"""Assignment submissions and their review."""

from .models import ASSIGNMENTS_TABLES_CQL, AssignmentSubmission, SubmissionStatus


__all__ = ["ASSIGNMENTS_TABLES_CQL", "AssignmentSubmission", "SubmissionStatus"]
