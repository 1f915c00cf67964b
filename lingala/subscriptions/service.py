"""Subscription read service."""

from datetime import UTC, datetime
from uuid import UUID

from lingala.core.database.query import CassandraService

from .models import Subscription


class SubscriptionService(CassandraService):
    """Answers "does this user have an active subscription?"."""

    def _prepare_statements(self) -> None:
        self._get_user_subscriptions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.subscriptions
            WHERE user_id = ?
        """)

    async def get_user_subscriptions(self, user_id: UUID) -> list[Subscription]:
        rows = await self._execute(self._get_user_subscriptions, [user_id])
        return [Subscription.from_row(row) for row in rows]

    async def get_active_subscription(self, user_id: UUID) -> Subscription | None:
        """Active subscription with the latest period end, if any.

        A user may hold several rows (renewals, plan changes); any active
        one grants access.
        """
        now = datetime.now(UTC)
        active = [
            sub
            for sub in await self.get_user_subscriptions(user_id)
            if sub.is_active(now)
        ]
        if not active:
            return None
        return max(active, key=lambda sub: sub.current_period_end)

    async def has_active_subscription(self, user_id: UUID) -> bool:
        return await self.get_active_subscription(user_id) is not None

    async def get_current_subscription(self, user_id: UUID) -> Subscription | None:
        """Subscription to show on the account page.

        The active one when present, otherwise the most recently updated row.
        """
        subscriptions = await self.get_user_subscriptions(user_id)
        if not subscriptions:
            return None

        now = datetime.now(UTC)
        active = [sub for sub in subscriptions if sub.is_active(now)]
        if active:
            return max(active, key=lambda sub: sub.current_period_end)

        return max(subscriptions, key=lambda sub: sub.updated_at or sub.created_at)
