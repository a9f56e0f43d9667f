"""Assessment module.

Provides:
- Instructor-authored MCQ and coding assessments per course
- One submission per student, MCQ answers marked on submit
- Teacher grading of coding answers
"""

from .models import ASSESSMENTS_TABLES_CQL, Assessment, AssessmentSubmission


__all__ = ["ASSESSMENTS_TABLES_CQL", "Assessment", "AssessmentSubmission"]
