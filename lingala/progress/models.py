"""Database models for lesson progress tracking.

One row per (user, lesson) holding the last reported playback position,
the derived percentage and the completion state.

The primary key is exactly (user_id, lesson_id): an INSERT on an
existing key overwrites that row, so the table cannot hold two rows for
the same pair.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition per user: a course's rows are read with lesson_id IN (...)
LESSON_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lesson_progress (
    user_id UUID,
    lesson_id UUID,
    current_time_seconds DOUBLE,
    duration_seconds DOUBLE,
    progress_percentage INT,
    is_completed BOOLEAN,
    watch_time_seconds INT,
    completed_at TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id), lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    LESSON_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """Lesson progress entity for a specific user.

    Attributes:
        user_id: User UUID
        lesson_id: Lesson UUID
        current_time: Last reported playback position (seconds)
        duration: Video duration reported with that position (seconds)
        progress_percentage: Rounded watched percentage (0-100)
        is_completed: Completion flag, never reverts once set
        watch_time_seconds: Cumulative watch time reported by the player
        completed_at: First completion timestamp
        created_at: First report timestamp
        updated_at: Last report timestamp
    """

    def __init__(
        self,
        user_id: UUID,
        lesson_id: UUID,
        current_time: float = 0.0,
        duration: float = 0.0,
        progress_percentage: int = 0,
        is_completed: bool = False,
        watch_time_seconds: int = 0,
        completed_at: datetime | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.user_id = user_id
        self.lesson_id = lesson_id
        self.current_time = current_time
        self.duration = duration
        self.progress_percentage = progress_percentage
        self.is_completed = is_completed
        self.watch_time_seconds = watch_time_seconds
        self.completed_at = ensure_utc_aware(completed_at)
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at) or self.created_at

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        """Create LessonProgress instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            lesson_id=row.lesson_id,
            current_time=row.current_time_seconds or 0.0,
            duration=row.duration_seconds or 0.0,
            progress_percentage=row.progress_percentage or 0,
            # Null until the completing write lands
            is_completed=bool(row.is_completed),
            watch_time_seconds=row.watch_time_seconds or 0,
            completed_at=row.completed_at,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "lesson_id": self.lesson_id,
            "current_time": self.current_time,
            "duration": self.duration,
            "progress_percentage": self.progress_percentage,
            "is_completed": self.is_completed,
            "watch_time_seconds": self.watch_time_seconds,
            "completed_at": self.completed_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<LessonProgress user={self.user_id} lesson={self.lesson_id} "
            f"{self.progress_percentage}% completed={self.is_completed}>"
        )
