"""Tests for subscription activity checks."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from cassandra.cluster import Session

from lingala.subscriptions.models import Subscription, SubscriptionStatus
from lingala.subscriptions.service import SubscriptionService


NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


def make_subscription(
    status: str = SubscriptionStatus.ACTIVE.value,
    start: datetime | None = NOW - timedelta(days=10),
    end: datetime | None = NOW + timedelta(days=20),
) -> Subscription:
    return Subscription(
        user_id=uuid4(),
        stripe_subscription_id=f"sub_{uuid4().hex[:12]}",
        status=status,
        current_period_start=start,
        current_period_end=end,
    )


class TestSubscriptionIsActive:
    def test_active_within_period(self) -> None:
        assert make_subscription().is_active(NOW) is True

    def test_trialing_counts(self) -> None:
        sub = make_subscription(status=SubscriptionStatus.TRIALING.value)
        assert sub.is_active(NOW) is True

    @pytest.mark.parametrize(
        "status",
        [
            SubscriptionStatus.PAST_DUE.value,
            SubscriptionStatus.CANCELED.value,
            SubscriptionStatus.INCOMPLETE.value,
            SubscriptionStatus.UNPAID.value,
        ],
    )
    def test_other_statuses_inactive(self, status) -> None:
        assert make_subscription(status=status).is_active(NOW) is False

    def test_expired_period(self) -> None:
        sub = make_subscription(end=NOW - timedelta(seconds=1))
        assert sub.is_active(NOW) is False

    def test_period_not_started(self) -> None:
        sub = make_subscription(start=NOW + timedelta(days=1))
        assert sub.is_active(NOW) is False

    def test_missing_period_end(self) -> None:
        assert make_subscription(end=None).is_active(NOW) is False

    def test_boundaries_inclusive(self) -> None:
        sub = make_subscription(start=NOW, end=NOW)
        assert sub.is_active(NOW) is True


class TestSubscriptionService:
    @pytest.fixture
    def mock_session(self):
        session = Mock(spec=Session)
        session.prepare = Mock(return_value=Mock())
        session.aexecute = AsyncMock(return_value=[])
        return session

    @pytest.fixture
    def service(self, mock_session) -> SubscriptionService:
        return SubscriptionService(session=mock_session, keyspace="test_keyspace")

    @staticmethod
    def _row(sub: Subscription) -> Mock:
        return Mock(
            user_id=sub.user_id,
            stripe_subscription_id=sub.stripe_subscription_id,
            stripe_customer_id=None,
            stripe_price_id=None,
            status=sub.status,
            plan_type="monthly",
            current_period_start=sub.current_period_start,
            current_period_end=sub.current_period_end,
            created_at=sub.created_at,
            updated_at=None,
        )

    @pytest.mark.asyncio
    async def test_no_rows(self, service) -> None:
        assert await service.has_active_subscription(uuid4()) is False

    @pytest.mark.asyncio
    async def test_any_active_row_grants(self, service, mock_session) -> None:
        now = datetime.now(UTC)
        expired = make_subscription(end=now - timedelta(days=1))
        current = make_subscription(
            start=now - timedelta(days=1), end=now + timedelta(days=29)
        )
        mock_session.aexecute.return_value = [self._row(expired), self._row(current)]

        active = await service.get_active_subscription(uuid4())

        assert active.stripe_subscription_id == current.stripe_subscription_id

    @pytest.mark.asyncio
    async def test_only_lapsed_rows(self, service, mock_session) -> None:
        now = datetime.now(UTC)
        lapsed = make_subscription(
            status=SubscriptionStatus.PAST_DUE.value, end=now + timedelta(days=3)
        )
        mock_session.aexecute.return_value = [self._row(lapsed)]

        assert await service.has_active_subscription(uuid4()) is False
        current = await service.get_current_subscription(uuid4())
        assert current.status == SubscriptionStatus.PAST_DUE.value
