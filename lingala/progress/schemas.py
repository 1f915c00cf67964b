"""Pydantic schemas for lesson progress.

Request and response models for:
- Playback position reports
- Lesson progress queries
- Course completion statistics
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import LessonProgress
from .service import CourseProgress, CourseProgressStats


# ==============================================================================
# Progress Update Schemas
# ==============================================================================


class RecordProgressRequest(BaseModel):
    """Playback tick sent by the player (throttled to one every 5s)."""

    model_config = ConfigDict(populate_by_name=True)

    lesson_id: UUID = Field(..., alias="lessonId", description="Lesson UUID")
    current_time: float = Field(
        ...,
        alias="currentTime",
        ge=0,
        allow_inf_nan=False,
        description="Playback position in seconds",
    )
    duration: float = Field(
        ...,
        ge=0,
        allow_inf_nan=False,
        description="Video duration in seconds, 0 when unknown",
    )
    completed: bool = Field(False, description="Explicit completion signal")
    watch_time_seconds: int | None = Field(
        None,
        alias="watchTimeSeconds",
        ge=0,
        description="Cumulative watch time, kept as stored when omitted",
    )


class LessonProgressResponse(BaseModel):
    """Lesson progress response."""

    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    current_time: float = Field(description="Resume position in seconds")
    duration: float
    progress_percentage: int = Field(description="0-100 percentage")
    is_completed: bool
    watch_time_seconds: int = 0
    completed_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "LessonProgressResponse":
        """Create response from entity."""
        return cls(
            lesson_id=entity.lesson_id,
            current_time=entity.current_time,
            duration=entity.duration,
            progress_percentage=entity.progress_percentage,
            is_completed=entity.is_completed,
            watch_time_seconds=entity.watch_time_seconds,
            completed_at=entity.completed_at,
            updated_at=entity.updated_at,
        )

    @classmethod
    def empty(cls, lesson_id: UUID) -> "LessonProgressResponse":
        """Zeroed progress for a lesson never played."""
        return cls(
            lesson_id=lesson_id,
            current_time=0,
            duration=0,
            progress_percentage=0,
            is_completed=False,
        )


# ==============================================================================
# Course Progress Schemas
# ==============================================================================


class CourseProgressStatsResponse(BaseModel):
    completed: int
    total: int
    percentage: int = Field(description="Rounded completed/total, 0 for empty courses")

    @classmethod
    def from_stats(cls, stats: CourseProgressStats) -> "CourseProgressStatsResponse":
        return cls(
            completed=stats.completed,
            total=stats.total,
            percentage=stats.percentage,
        )


class CourseProgressResponse(BaseModel):
    """Course dashboard: statistics and per-lesson progress."""

    course_id: UUID
    stats: CourseProgressStatsResponse
    lessons: list[LessonProgressResponse]

    @classmethod
    def from_course_progress(cls, progress: CourseProgress) -> "CourseProgressResponse":
        return cls(
            course_id=progress.course_id,
            stats=CourseProgressStatsResponse.from_stats(progress.stats),
            lessons=[LessonProgressResponse.from_entity(p) for p in progress.lessons],
        )
