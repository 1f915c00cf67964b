"""Lesson progress API endpoints.

Provides routes for:
- Playback position reports (throttled by the player)
- Explicit lesson completion
- Progress queries per lesson and per course
"""

from uuid import UUID

from fastapi import APIRouter

from lingala.auth.dependencies import CurrentUser

from .dependencies import ProgressServiceDep
from .schemas import (
    CourseProgressResponse,
    LessonProgressResponse,
    RecordProgressRequest,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])


@router.post(
    "",
    response_model=LessonProgressResponse,
    summary="Record playback progress",
)
async def record_progress(
    data: RecordProgressRequest,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> LessonProgressResponse:
    """Store the caller's playback position for a lesson.

    Auto-completes the lesson at 90% watched or when ``completed`` is sent.
    Safe to retry.
    """
    progress = await progress_service.record_progress(
        user_id=user.id,
        lesson_id=data.lesson_id,
        current_time=data.current_time,
        duration=data.duration,
        completed=data.completed,
        watch_time_seconds=data.watch_time_seconds,
    )
    return LessonProgressResponse.from_entity(progress)


@router.get(
    "/course/{course_id}",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> CourseProgressResponse:
    """Completed/total lessons for the caller plus per-lesson rows."""
    course_progress = await progress_service.get_course_progress(user.id, course_id)
    return CourseProgressResponse.from_course_progress(course_progress)


@router.get(
    "/{lesson_id}",
    response_model=LessonProgressResponse,
    summary="Get lesson progress",
)
async def get_lesson_progress(
    lesson_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> LessonProgressResponse:
    """Stored progress for the caller, zeroed when the lesson was never played."""
    progress = await progress_service.get_lesson_progress(user.id, lesson_id)
    if progress is None:
        return LessonProgressResponse.empty(lesson_id)
    return LessonProgressResponse.from_entity(progress)


@router.post(
    "/{lesson_id}/complete",
    response_model=LessonProgressResponse,
    summary="Mark lesson as complete",
)
async def mark_lesson_complete(
    lesson_id: UUID,
    progress_service: ProgressServiceDep,
    user: CurrentUser,
) -> LessonProgressResponse:
    """Complete a lesson that has no video to watch."""
    progress = await progress_service.mark_lesson_complete(user.id, lesson_id)
    return LessonProgressResponse.from_entity(progress)
