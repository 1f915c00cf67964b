"""Course catalog (read side)."""

from .models import COURSES_TABLES_CQL, Course, Lesson, Module


__all__ = ["COURSES_TABLES_CQL", "Course", "Lesson", "Module"]
