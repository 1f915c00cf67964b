"""Tests for AccessService: lookups around the access rules and playback."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from lingala.access.playback import PlaybackSigner
from lingala.access.resolver import AccessReason, DenialReason
from lingala.access.service import AccessService
from lingala.core.errors import (
    AuthenticationRequiredError,
    CourseModuleNotFoundError,
    InvalidLessonStructureError,
    LessonNotFoundError,
    NotEnrolledError,
)
from lingala.courses.models import Lesson, Module


@pytest.fixture
def enrollment_service() -> AsyncMock:
    service = AsyncMock()
    service.is_enrolled.return_value = False
    return service


@pytest.fixture
def subscription_service() -> AsyncMock:
    service = AsyncMock()
    service.has_active_subscription.return_value = False
    return service


@pytest.fixture
def access_service(
    course_service, enrollment_service, subscription_service
) -> AccessService:
    return AccessService(
        course_service=course_service,
        enrollment_service=enrollment_service,
        subscription_service=subscription_service,
        signer=PlaybackSigner(signing_key="test-signing-key", expiry_seconds=600),
    )


class TestCheckLessonAccess:
    @pytest.mark.asyncio
    async def test_unknown_lesson(self, access_service, user) -> None:
        with pytest.raises(LessonNotFoundError):
            await access_service.check_lesson_access(uuid4(), user)

    @pytest.mark.asyncio
    async def test_free_preview_skips_lookups(
        self,
        access_service,
        course_service,
        enrollment_service,
        subscription_service,
        lesson,
    ) -> None:
        lesson.free_preview = True

        _, decision = await access_service.check_lesson_access(lesson.id, None)

        assert decision.reason is AccessReason.FREE_PREVIEW
        course_service.get_module.assert_not_awaited()
        enrollment_service.is_enrolled.assert_not_awaited()
        subscription_service.has_active_subscription.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_anonymous_paid_lesson(
        self, access_service, enrollment_service, lesson
    ) -> None:
        _, decision = await access_service.check_lesson_access(lesson.id, None)

        assert decision.allowed is False
        assert decision.denial is DenialReason.AUTHENTICATION_REQUIRED
        enrollment_service.is_enrolled.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enrolled_skips_subscription(
        self,
        access_service,
        enrollment_service,
        subscription_service,
        user,
        lesson,
        course,
    ) -> None:
        enrollment_service.is_enrolled.return_value = True

        _, decision = await access_service.check_lesson_access(lesson.id, user)

        assert decision.reason is AccessReason.ENROLLMENT
        enrollment_service.is_enrolled.assert_awaited_once_with(user.id, course.id)
        subscription_service.has_active_subscription.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_subscriber(
        self, access_service, subscription_service, user, lesson
    ) -> None:
        subscription_service.has_active_subscription.return_value = True

        _, decision = await access_service.check_lesson_access(lesson.id, user)

        assert decision.reason is AccessReason.SUBSCRIPTION

    @pytest.mark.asyncio
    async def test_neither(self, access_service, user, lesson) -> None:
        _, decision = await access_service.check_lesson_access(lesson.id, user)

        assert decision.allowed is False
        assert decision.denial is DenialReason.NOT_ENROLLED


class TestLessonStructure:
    @pytest.mark.asyncio
    async def test_lesson_without_module(
        self, access_service, course_service, user
    ) -> None:
        orphan = Lesson(module_id=None, title="Orphan")
        course_service.get_lesson.side_effect = None
        course_service.get_lesson.return_value = orphan

        with pytest.raises(InvalidLessonStructureError):
            await access_service.check_lesson_access(orphan.id, user)

    @pytest.mark.asyncio
    async def test_module_row_missing(
        self, access_service, course_service, user
    ) -> None:
        lesson = Lesson(module_id=uuid4(), title="Dangling")
        course_service.get_lesson.side_effect = None
        course_service.get_lesson.return_value = lesson

        with pytest.raises(CourseModuleNotFoundError):
            await access_service.check_lesson_access(lesson.id, user)

    @pytest.mark.asyncio
    async def test_module_without_course(
        self, access_service, course_service, user
    ) -> None:
        module = Module(course_id=None, title="Detached")
        lesson = Lesson(module_id=module.id, title="Detached lesson")
        course_service.get_lesson.side_effect = None
        course_service.get_lesson.return_value = lesson
        course_service.get_module.side_effect = None
        course_service.get_module.return_value = module

        with pytest.raises(InvalidLessonStructureError):
            await access_service.check_lesson_access(lesson.id, user)

    @pytest.mark.asyncio
    async def test_free_preview_with_broken_chain_still_plays(
        self, access_service, course_service
    ) -> None:
        orphan = Lesson(module_id=None, title="Orphan preview", free_preview=True)
        course_service.get_lesson.side_effect = None
        course_service.get_lesson.return_value = orphan

        _, decision = await access_service.check_lesson_access(orphan.id, None)

        assert decision.allowed is True


class TestIssuePlayback:
    @pytest.mark.asyncio
    async def test_anonymous_denied(self, access_service, lesson) -> None:
        with pytest.raises(AuthenticationRequiredError):
            await access_service.issue_playback(lesson.id, None)

    @pytest.mark.asyncio
    async def test_not_enrolled_denied(self, access_service, user, lesson) -> None:
        with pytest.raises(NotEnrolledError):
            await access_service.issue_playback(lesson.id, user)

    @pytest.mark.asyncio
    async def test_enrolled_gets_signed_url(
        self, access_service, enrollment_service, user, lesson
    ) -> None:
        enrollment_service.is_enrolled.return_value = True

        grant = await access_service.issue_playback(lesson.id, user)

        assert grant.available is True
        assert grant.reason is AccessReason.ENROLLMENT
        assert grant.playback_url.startswith(lesson.video_url)
        assert "token=" in grant.playback_url
        assert grant.expires_in == 600
        assert grant.expires_at is not None

    @pytest.mark.asyncio
    async def test_video_not_ready(
        self, access_service, enrollment_service, user, lesson
    ) -> None:
        lesson.video_url = None
        enrollment_service.is_enrolled.return_value = True

        grant = await access_service.issue_playback(lesson.id, user)

        assert grant.available is False
        assert grant.playback_url is None
        assert grant.expires_at is None
        assert grant.expires_in is None

    @pytest.mark.asyncio
    async def test_unsigned_url_has_no_expiry(
        self, course_service, enrollment_service, subscription_service, user, lesson
    ) -> None:
        enrollment_service.is_enrolled.return_value = True
        service = AccessService(
            course_service=course_service,
            enrollment_service=enrollment_service,
            subscription_service=subscription_service,
            signer=PlaybackSigner(signing_key=None, expiry_seconds=600),
        )

        grant = await service.issue_playback(lesson.id, user)

        assert grant.available is True
        assert grant.playback_url == lesson.video_url
        assert grant.expires_in is None
        assert grant.expires_at is None
