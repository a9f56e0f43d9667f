"""Enrollment and day progress module.

Provides:
- Course enrollment management (enroll, withdraw, reject)
- Day completion and progress percentage
- Quiz day markers on the enrollment
"""

from .models import (
    INACTIVE_STATUSES,
    PROGRESS_TABLES_CQL,
    Enrollment,
    EnrollmentStatus,
)


__all__ = [
    "INACTIVE_STATUSES",
    "PROGRESS_TABLES_CQL",
    "Enrollment",
    "EnrollmentStatus",
]
