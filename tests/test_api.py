"""HTTP-level tests: routing, authentication and error rendering.

Services are wired onto ``app.state`` the way the lifespan does it,
with the progress service running against the in-memory session.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from lingala.access.playback import PlaybackSigner
from lingala.access.service import AccessService
from lingala.core.errors import AlreadyEnrolledError
from lingala.enrollments.models import Enrollment, create_admin_grant
from lingala.progress.service import ProgressService
from lingala.subscriptions.models import Subscription


@pytest.fixture
def enrollment_service() -> AsyncMock:
    service = AsyncMock()
    service.is_enrolled.return_value = False
    service.get_user_enrollments.return_value = []
    return service


@pytest.fixture
def subscription_service() -> AsyncMock:
    service = AsyncMock()
    service.has_active_subscription.return_value = False
    service.get_current_subscription.return_value = None
    return service


@pytest.fixture
def wired_app(
    app, progress_session, course_service, enrollment_service, subscription_service
):
    app.state.cassandra_session = progress_session
    app.state.course_service = course_service
    app.state.enrollment_service = enrollment_service
    app.state.subscription_service = subscription_service
    app.state.progress_service = ProgressService(
        session=progress_session,
        keyspace="test_keyspace",
        course_service=course_service,
    )
    app.state.access_service = AccessService(
        course_service=course_service,
        enrollment_service=enrollment_service,
        subscription_service=subscription_service,
        signer=PlaybackSigner(signing_key="test-signing-key"),
    )
    return app


def assert_error(response, status_code: int, code: str) -> dict:
    assert response.status_code == status_code
    body = response.json()
    assert body["error"] is True
    assert body["code"] == code
    assert body["status_code"] == status_code
    assert "message" in body
    assert "request_id" in body
    return body


# ==============================================================================
# Progress
# ==============================================================================


class TestProgressEndpoints:
    def test_requires_authentication(self, client, wired_app, lesson) -> None:
        response = client.post(
            "/v1/progress",
            json={"lessonId": str(lesson.id), "currentTime": 10, "duration": 100},
        )

        body = assert_error(response, 401, "authentication_required")
        assert body["retryable"] is False
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client, wired_app, lesson) -> None:
        response = client.get(
            f"/v1/progress/{lesson.id}",
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert_error(response, 401, "authentication_required")

    def test_record_then_read(
        self, client, wired_app, user, auth_headers, lesson
    ) -> None:
        headers = auth_headers(user)

        response = client.post(
            "/v1/progress",
            json={"lessonId": str(lesson.id), "currentTime": 95, "duration": 100},
            headers=headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["progress_percentage"] == 95
        assert data["is_completed"] is True

        response = client.get(f"/v1/progress/{lesson.id}", headers=headers)
        assert response.status_code == 200
        assert response.json()["current_time"] == 95

    @pytest.mark.parametrize(
        "payload",
        [
            {"currentTime": -1, "duration": 100},
            {"currentTime": 10, "duration": -3},
            {"currentTime": "abc", "duration": 100},
            {"duration": 100},
        ],
    )
    def test_malformed_numbers(
        self, client, wired_app, progress_session, user, auth_headers, lesson, payload
    ) -> None:
        response = client.post(
            "/v1/progress",
            json={"lessonId": str(lesson.id), **payload},
            headers=auth_headers(user),
        )

        body = assert_error(response, 400, "invalid_input")
        assert body["details"]
        assert progress_session.rows == {}

    def test_unknown_lesson(self, client, wired_app, user, auth_headers) -> None:
        response = client.post(
            "/v1/progress",
            json={"lessonId": str(uuid4()), "currentTime": 1, "duration": 10},
            headers=auth_headers(user),
        )

        assert_error(response, 404, "lesson_not_found")

    def test_never_played_lesson_is_zeroed(
        self, client, wired_app, user, auth_headers, lesson
    ) -> None:
        response = client.get(f"/v1/progress/{lesson.id}", headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["current_time"] == 0
        assert data["duration"] == 0
        assert data["progress_percentage"] == 0
        assert data["is_completed"] is False

    def test_mark_complete(self, client, wired_app, user, auth_headers, lesson) -> None:
        response = client.post(
            f"/v1/progress/{lesson.id}/complete", headers=auth_headers(user)
        )

        assert response.status_code == 200
        assert response.json()["is_completed"] is True

    def test_course_progress(
        self, client, wired_app, user, auth_headers, course, lessons
    ) -> None:
        headers = auth_headers(user)
        for lesson in lessons[:3]:
            client.post(
                "/v1/progress",
                json={"lessonId": str(lesson.id), "currentTime": 60, "duration": 60},
                headers=headers,
            )

        response = client.get(f"/v1/progress/course/{course.id}", headers=headers)

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats == {"completed": 3, "total": 5, "percentage": 60}

    def test_unknown_course(self, client, wired_app, user, auth_headers) -> None:
        response = client.get(
            f"/v1/progress/course/{uuid4()}", headers=auth_headers(user)
        )

        assert_error(response, 404, "course_not_found")

    def test_service_not_wired(self, client, user, auth_headers, lesson) -> None:
        response = client.get(f"/v1/progress/{lesson.id}", headers=auth_headers(user))

        body = assert_error(response, 503, "upstream_unavailable")
        assert body["retryable"] is True


# ==============================================================================
# Access
# ==============================================================================


class TestAccessEndpoints:
    def test_anonymous_paid_lesson(self, client, wired_app, lesson) -> None:
        response = client.post(f"/v1/lessons/{lesson.id}/access-token")

        assert_error(response, 401, "authentication_required")

    def test_anonymous_free_preview(self, client, wired_app, lesson) -> None:
        lesson.free_preview = True

        response = client.post(f"/v1/lessons/{lesson.id}/access-token")

        assert response.status_code == 200
        data = response.json()
        assert data["reason"] == "free_preview"
        assert data["available"] is True
        assert "token=" in data["playback_url"]

    def test_not_enrolled(self, client, wired_app, user, auth_headers, lesson) -> None:
        response = client.post(
            f"/v1/lessons/{lesson.id}/access-token", headers=auth_headers(user)
        )

        assert_error(response, 403, "not_enrolled")

    def test_enrolled(
        self, client, wired_app, enrollment_service, user, auth_headers, lesson
    ) -> None:
        enrollment_service.is_enrolled.return_value = True

        response = client.post(
            f"/v1/lessons/{lesson.id}/access-token", headers=auth_headers(user)
        )

        assert response.status_code == 200
        assert response.json()["reason"] == "enrollment"

    def test_subscriber(
        self, client, wired_app, subscription_service, user, auth_headers, lesson
    ) -> None:
        subscription_service.has_active_subscription.return_value = True

        response = client.post(
            f"/v1/lessons/{lesson.id}/access-token", headers=auth_headers(user)
        )

        assert response.status_code == 200
        assert response.json()["reason"] == "subscription"

    def test_broken_lesson_structure(
        self, client, wired_app, course_service, user, auth_headers, lesson
    ) -> None:
        lesson.module_id = None

        response = client.post(
            f"/v1/lessons/{lesson.id}/access-token", headers=auth_headers(user)
        )

        assert_error(response, 400, "invalid_lesson_structure")

    def test_decision_endpoint_never_denies(self, client, wired_app, lesson) -> None:
        response = client.get(f"/v1/lessons/{lesson.id}/access")

        assert response.status_code == 200
        data = response.json()
        assert data["allowed"] is False
        assert data["denial"] == "authentication_required"

    def test_unknown_lesson(self, client, wired_app) -> None:
        response = client.post(f"/v1/lessons/{uuid4()}/access-token")

        assert_error(response, 404, "lesson_not_found")


# ==============================================================================
# Enrollments and subscription
# ==============================================================================


class TestEnrollmentEndpoints:
    def test_admin_grant(
        self, client, wired_app, enrollment_service, admin, auth_headers, user, course
    ) -> None:
        enrollment_service.grant_enrollment.return_value = create_admin_grant(
            user_id=user.id, course_id=course.id, granted_by=admin.id
        )

        response = client.post(
            f"/v1/admin/users/{user.id}/enrollments",
            json={"course_id": str(course.id)},
            headers=auth_headers(admin),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["source"] == "admin_grant"
        assert data["user_id"] == str(user.id)
        enrollment_service.grant_enrollment.assert_awaited_once_with(
            user_id=user.id, course_id=course.id, granted_by=admin.id
        )

    def test_grant_requires_admin(
        self, client, wired_app, enrollment_service, user, auth_headers, course
    ) -> None:
        response = client.post(
            f"/v1/admin/users/{uuid4()}/enrollments",
            json={"course_id": str(course.id)},
            headers=auth_headers(user),
        )

        assert_error(response, 403, "permission_denied")
        enrollment_service.grant_enrollment.assert_not_awaited()

    def test_duplicate_grant(
        self, client, wired_app, enrollment_service, admin, auth_headers, user, course
    ) -> None:
        enrollment_service.grant_enrollment.side_effect = AlreadyEnrolledError

        response = client.post(
            f"/v1/admin/users/{user.id}/enrollments",
            json={"course_id": str(course.id)},
            headers=auth_headers(admin),
        )

        assert_error(response, 409, "already_enrolled")

    def test_grant_unknown_course(
        self, client, wired_app, admin, auth_headers, user
    ) -> None:
        response = client.post(
            f"/v1/admin/users/{user.id}/enrollments",
            json={"course_id": str(uuid4())},
            headers=auth_headers(admin),
        )

        assert_error(response, 404, "course_not_found")

    def test_my_enrollments_with_resume_lesson(
        self,
        client,
        wired_app,
        enrollment_service,
        user,
        auth_headers,
        course,
        lessons,
    ) -> None:
        enrollment_service.get_user_enrollments.return_value = [
            Enrollment(user_id=user.id, course_id=course.id)
        ]
        headers = auth_headers(user)
        client.post(
            "/v1/progress",
            json={"lessonId": str(lessons[2].id), "currentTime": 5, "duration": 60},
            headers=headers,
        )

        response = client.get("/v1/enrollments/my", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        item = data["items"][0]
        assert item["course_title"] == course.title
        assert item["last_viewed_lesson_id"] == str(lessons[2].id)


class TestSubscriptionEndpoint:
    def test_no_subscription(self, client, wired_app, user, auth_headers) -> None:
        response = client.get("/v1/subscription/status", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json() == {
            "has_active_subscription": False,
            "subscription": None,
        }

    def test_active_subscription(
        self, client, wired_app, subscription_service, user, auth_headers
    ) -> None:
        now = datetime.now(UTC)
        subscription_service.get_current_subscription.return_value = Subscription(
            user_id=user.id,
            stripe_subscription_id="sub_123",
            status="active",
            current_period_start=now - timedelta(days=1),
            current_period_end=now + timedelta(days=29),
        )

        response = client.get("/v1/subscription/status", headers=auth_headers(user))

        data = response.json()
        assert data["has_active_subscription"] is True
        assert data["subscription"]["stripe_subscription_id"] == "sub_123"


def test_request_id_echoed(client, wired_app, lesson) -> None:
    response = client.post(
        f"/v1/lessons/{lesson.id}/access-token",
        headers={"X-Request-ID": "req-abc-123"},
    )

    assert response.headers["X-Request-ID"] == "req-abc-123"
    assert response.json()["request_id"] == "req-abc-123"
