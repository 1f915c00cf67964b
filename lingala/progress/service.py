"""Lesson progress service layer.

Business logic for:
- Playback position updates with automatic completion
- Explicit lesson completion
- Per-course completion statistics
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from lingala.core.database.query import DEFAULT_QUERY_TIMEOUT, CassandraService
from lingala.core.errors import (
    CourseNotFoundError,
    InvalidInputError,
    LessonNotFoundError,
)

from .locks import ProgressLocks, lease_for
from .models import LessonProgress


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from lingala.courses.service import CourseService

logger = structlog.get_logger(__name__)

# Completion threshold: 90% watched = complete
COMPLETION_THRESHOLD = 90.0


def round_half_up(value: float) -> int:
    """Round a non-negative value, halves going up."""
    return math.floor(value + 0.5)


def compute_progress_percentage(current_time: float, duration: float) -> float:
    """Watched percentage, capped at 100. Zero when the duration is unknown."""
    if duration <= 0:
        return 0.0
    return min(current_time / duration * 100, 100.0)


def last_viewed_lesson_id(
    progress: Iterable[LessonProgress],
    lesson_ids: set[UUID],
) -> UUID | None:
    """Lesson among ``lesson_ids`` whose progress was updated most recently."""
    candidates = [p for p in progress if p.lesson_id in lesson_ids]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.updated_at).lesson_id


@dataclass(frozen=True)
class CourseProgressStats:
    completed: int
    total: int
    percentage: int


@dataclass
class CourseProgress:
    course_id: UUID
    stats: CourseProgressStats
    lessons: list[LessonProgress] = field(default_factory=list)


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService(CassandraService):
    """Service for lesson progress tracking."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        locks: ProgressLocks | None = None,
        request_timeout: float = DEFAULT_QUERY_TIMEOUT,
        completion_threshold: float = COMPLETION_THRESHOLD,
    ):
        self.course_service = course_service
        self.locks = locks or ProgressLocks(lease_seconds=lease_for(request_timeout))
        self.completion_threshold = completion_threshold
        super().__init__(session, keyspace, request_timeout)

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE user_id = ? AND lesson_id = ?
        """)

        self._get_user_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE user_id = ?
        """)

        self._get_progress_for_lessons = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lesson_progress
            WHERE user_id = ? AND lesson_id IN ?
        """)

        # Completion columns are left out so a stored completion survives
        self._upsert_position = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (user_id, lesson_id, current_time_seconds, duration_seconds,
             progress_percentage, watch_time_seconds, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._upsert_completed = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lesson_progress
            (user_id, lesson_id, current_time_seconds, duration_seconds,
             progress_percentage, watch_time_seconds, created_at, updated_at,
             is_completed, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, true, ?)
        """)

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_lesson_progress(
        self, user_id: UUID, lesson_id: UUID
    ) -> LessonProgress | None:
        """Get progress for a specific lesson."""
        result = await self._execute(self._get_progress, [user_id, lesson_id])
        row = result.one()
        return LessonProgress.from_row(row) if row else None

    async def get_user_progress(self, user_id: UUID) -> list[LessonProgress]:
        """Every progress row of a user."""
        rows = await self._execute(self._get_user_progress, [user_id])
        return [LessonProgress.from_row(row) for row in rows]

    async def get_progress_for_lessons(
        self, user_id: UUID, lesson_ids: list[UUID]
    ) -> list[LessonProgress]:
        """Progress rows of a user restricted to ``lesson_ids``."""
        if not lesson_ids:
            return []
        rows = await self._execute(
            self._get_progress_for_lessons, [user_id, lesson_ids]
        )
        return [LessonProgress.from_row(row) for row in rows]

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def record_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        current_time: float,
        duration: float,
        completed: bool = False,
        watch_time_seconds: int | None = None,
    ) -> LessonProgress:
        """Record a playback tick.

        Completes the lesson when ``completed`` is set or the watched
        percentage reaches the threshold. Completion is never undone by a
        later, lower report. Repeating a call with the same arguments
        leaves the stored row unchanged apart from ``updated_at``.

        Args:
            user_id: User UUID
            lesson_id: Lesson UUID
            current_time: Playback position in seconds
            duration: Video duration in seconds (0 when unknown)
            completed: Explicit completion signal from the player
            watch_time_seconds: Cumulative watch time; kept as stored when None

        Returns:
            The persisted progress

        Raises:
            InvalidInputError: negative or non-finite position/duration
            LessonNotFoundError: unknown lesson
        """
        self._validate_position(current_time, duration)

        if await self.course_service.get_lesson(lesson_id) is None:
            raise LessonNotFoundError

        percentage = compute_progress_percentage(current_time, duration)
        reached = completed or percentage >= self.completion_threshold

        async with self.locks.hold(user_id, lesson_id):
            existing = await self.get_lesson_progress(user_id, lesson_id)
            already_completed = existing is not None and existing.is_completed
            newly_completed = reached and not already_completed
            now = datetime.now(UTC)

            if watch_time_seconds is None:
                watch_time_seconds = existing.watch_time_seconds if existing else 0

            progress = LessonProgress(
                user_id=user_id,
                lesson_id=lesson_id,
                current_time=current_time,
                duration=duration,
                progress_percentage=round_half_up(percentage),
                is_completed=already_completed or reached,
                watch_time_seconds=watch_time_seconds,
                completed_at=now
                if newly_completed
                else (existing.completed_at if existing else None),
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )

            await self._save(progress, completing=newly_completed)

        if newly_completed:
            logger.info(
                "lesson_completed",
                user_id=str(user_id),
                lesson_id=str(lesson_id),
                percentage=progress.progress_percentage,
                explicit=completed,
            )

        return progress

    async def mark_lesson_complete(
        self, user_id: UUID, lesson_id: UUID
    ) -> LessonProgress:
        """Complete a lesson without moving the playback position.

        Used for lessons without video. Completing twice is a no-op.
        """
        if await self.course_service.get_lesson(lesson_id) is None:
            raise LessonNotFoundError

        async with self.locks.hold(user_id, lesson_id):
            existing = await self.get_lesson_progress(user_id, lesson_id)
            if existing is not None and existing.is_completed:
                return existing

            now = datetime.now(UTC)
            progress = LessonProgress(
                user_id=user_id,
                lesson_id=lesson_id,
                current_time=existing.current_time if existing else 0.0,
                duration=existing.duration if existing else 0.0,
                progress_percentage=existing.progress_percentage if existing else 0,
                is_completed=True,
                watch_time_seconds=existing.watch_time_seconds if existing else 0,
                completed_at=now,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            await self._save(progress, completing=True)

        logger.info(
            "lesson_marked_complete",
            user_id=str(user_id),
            lesson_id=str(lesson_id),
        )
        return progress

    async def _save(self, progress: LessonProgress, *, completing: bool) -> None:
        params = [
            progress.user_id,
            progress.lesson_id,
            progress.current_time,
            progress.duration,
            progress.progress_percentage,
            progress.watch_time_seconds,
            progress.created_at,
            progress.updated_at,
        ]
        if completing:
            await self._execute(self._upsert_completed, [*params, progress.completed_at])
        else:
            await self._execute(self._upsert_position, params)

    def _validate_position(self, current_time: float, duration: float) -> None:
        for name, value in (("current_time", current_time), ("duration", duration)):
            if not isinstance(value, int | float) or isinstance(value, bool):
                raise InvalidInputError(f"{name} must be a number")
            if not math.isfinite(value) or value < 0:
                raise InvalidInputError(f"{name} must be a finite number >= 0")

    # ==========================================================================
    # Aggregation
    # ==========================================================================

    async def course_progress_stats(
        self, user_id: UUID, course_id: UUID
    ) -> CourseProgressStats:
        """Completed / total lessons of a course for one user."""
        course_progress = await self.get_course_progress(user_id, course_id)
        return course_progress.stats

    async def get_course_progress(
        self, user_id: UUID, course_id: UUID
    ) -> CourseProgress:
        """Course statistics plus the user's progress rows in that course.

        Recomputed from the catalog and the progress rows on every call.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        if await self.course_service.get_course(course_id) is None:
            raise CourseNotFoundError

        lesson_ids = await self.course_service.get_course_lesson_ids(course_id)
        lessons = await self.get_progress_for_lessons(user_id, lesson_ids)

        lesson_set = set(lesson_ids)
        total = len(lesson_set)
        completed = sum(
            1 for p in lessons if p.is_completed and p.lesson_id in lesson_set
        )
        percentage = round_half_up(completed / total * 100) if total > 0 else 0

        return CourseProgress(
            course_id=course_id,
            stats=CourseProgressStats(
                completed=completed, total=total, percentage=percentage
            ),
            lessons=lessons,
        )
