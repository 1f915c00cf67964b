"""Access service layer.

Loads what the access rules need (lesson, its course, the caller's
enrollment and subscription) and issues playback references for lessons
the caller may watch.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from lingala.core.errors import (
    CourseModuleNotFoundError,
    InvalidLessonStructureError,
    LessonNotFoundError,
)

from .resolver import AccessDecision, AccessReason, resolve_access


if TYPE_CHECKING:
    from lingala.auth.schemas import UserResponse
    from lingala.courses.models import Lesson
    from lingala.courses.service import CourseService
    from lingala.enrollments.service import EnrollmentService
    from lingala.subscriptions.service import SubscriptionService

    from .playback import PlaybackSigner


logger = structlog.get_logger(__name__)


@dataclass
class PlaybackGrant:
    """A playable reference handed to the player."""

    lesson_id: UUID
    reason: AccessReason
    available: bool
    playback_url: str | None
    expires_in: int | None
    expires_at: datetime | None


class AccessService:
    """Service for lesson access checks."""

    def __init__(
        self,
        course_service: "CourseService",
        enrollment_service: "EnrollmentService",
        subscription_service: "SubscriptionService",
        signer: "PlaybackSigner",
    ):
        self.course_service = course_service
        self.enrollment_service = enrollment_service
        self.subscription_service = subscription_service
        self.signer = signer

    async def get_course_id_for_lesson(self, lesson: "Lesson") -> UUID:
        """Follow lesson -> module -> course.

        Raises:
            InvalidLessonStructureError: lesson or module has no parent id
            CourseModuleNotFoundError: the referenced module row is missing
        """
        if lesson.module_id is None:
            logger.warning(
                "lesson_integrity_alert",
                lesson_id=str(lesson.id),
                problem="lesson_without_module",
            )
            raise InvalidLessonStructureError("Lesson is not attached to a module")

        module = await self.course_service.get_module(lesson.module_id)
        if module is None:
            raise CourseModuleNotFoundError

        if module.course_id is None:
            logger.warning(
                "lesson_integrity_alert",
                lesson_id=str(lesson.id),
                module_id=str(module.id),
                problem="module_without_course",
            )
            raise InvalidLessonStructureError("Module is not attached to a course")

        return module.course_id

    async def check_lesson_access(
        self,
        lesson_id: UUID,
        user: "UserResponse | None",
    ) -> tuple["Lesson", AccessDecision]:
        """Evaluate the access rules for a lesson.

        Free previews are decided without reading the course chain,
        enrollments or subscriptions. The subscription is only read when
        the caller is not enrolled.

        Raises:
            LessonNotFoundError: If the lesson does not exist
        """
        lesson = await self.course_service.get_lesson(lesson_id)
        if lesson is None:
            raise LessonNotFoundError

        if lesson.free_preview or user is None:
            return lesson, resolve_access(
                lesson, user, enrolled=False, subscription_active=False
            )

        course_id = await self.get_course_id_for_lesson(lesson)
        enrolled = await self.enrollment_service.is_enrolled(user.id, course_id)
        subscription_active = False
        if not enrolled:
            subscription_active = (
                await self.subscription_service.has_active_subscription(user.id)
            )

        decision = resolve_access(
            lesson, user, enrolled=enrolled, subscription_active=subscription_active
        )

        if not decision.allowed:
            logger.info(
                "lesson_access_denied",
                lesson_id=str(lesson_id),
                course_id=str(course_id),
                denial=decision.denial.value if decision.denial else None,
            )

        return lesson, decision

    async def issue_playback(
        self,
        lesson_id: UUID,
        user: "UserResponse | None",
    ) -> PlaybackGrant:
        """Apply the access rules and hand out a playable reference.

        ``available`` is False while the transcoding service has not yet
        produced a manifest for the lesson.

        Raises:
            AuthenticationRequiredError: anonymous caller, lesson not a preview
            NotEnrolledError: signed in without enrollment or subscription
        """
        lesson, decision = await self.check_lesson_access(lesson_id, user)

        error = decision.to_error()
        if error is not None:
            raise error

        playback_url = None
        expires_in = None
        expires_at = None
        if lesson.has_playable_video:
            playback_url, expires = self.signer.sign(lesson.video_url)
            # unsigned URLs never expire
            if self.signer.is_configured:
                expires_in = self.signer.expiry_seconds
                expires_at = datetime.fromtimestamp(expires, tz=UTC)

        logger.info(
            "playback_issued",
            lesson_id=str(lesson_id),
            reason=decision.reason.value,
            available=playback_url is not None,
        )

        return PlaybackGrant(
            lesson_id=lesson.id,
            reason=decision.reason,
            available=playback_url is not None,
            playback_url=playback_url,
            expires_in=expires_in,
            expires_at=expires_at,
        )
