"""Course catalog module.

Provides:
- Course creation with unique course URLs
- Course lookups by id and course URL
"""

from .models import COURSES_TABLES_CQL, Course, generate_course_url


__all__ = ["COURSES_TABLES_CQL", "Course", "generate_course_url"]
