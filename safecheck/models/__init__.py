"""Database models."""

from safecheck.models.profile import Profile
from safecheck.models.assessment import Assessment, AssessmentQuestion, QuestionImage

__all__ = ["Profile", "Assessment", "AssessmentQuestion", "QuestionImage"]
