"""Lesson progress tracking.

Provides:
- Playback position tracking with resume support
- Lesson completion (automatic at 90% and explicit)
- Course completion statistics
"""

from .models import PROGRESS_TABLES_CQL, LessonProgress


__all__ = [
    "PROGRESS_TABLES_CQL",
    "LessonProgress",
]
