"""Subscription models and Cassandra schema.

Rows are written by the payment webhook (Stripe events) and only read
here. A subscription grants access to every course while it is active.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID


if TYPE_CHECKING:
    from cassandra.cluster import Row


class SubscriptionStatus(str, Enum):
    """Mirror of the payment provider's subscription statuses."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    UNPAID = "unpaid"


# Statuses that grant access while inside the billing period
ACCESS_GRANTING_STATUSES = frozenset(
    {SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value}
)


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

SUBSCRIPTIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.subscriptions (
    user_id UUID,
    stripe_subscription_id TEXT,
    stripe_customer_id TEXT,
    stripe_price_id TEXT,
    status TEXT,
    plan_type TEXT,
    current_period_start TIMESTAMP,
    current_period_end TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((user_id), stripe_subscription_id)
)
"""

SUBSCRIPTIONS_TABLES_CQL = [
    SUBSCRIPTIONS_TABLE_CQL,
]


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass
class Subscription:
    """A user's recurring premium subscription."""

    user_id: UUID
    stripe_subscription_id: str
    status: str
    stripe_customer_id: str | None = None
    stripe_price_id: str | None = None
    plan_type: str | None = None
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: "Row") -> "Subscription":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            stripe_subscription_id=row.stripe_subscription_id,
            status=row.status or SubscriptionStatus.INCOMPLETE.value,
            stripe_customer_id=row.stripe_customer_id,
            stripe_price_id=row.stripe_price_id,
            plan_type=row.plan_type,
            current_period_start=ensure_utc_aware(row.current_period_start),
            current_period_end=ensure_utc_aware(row.current_period_end),
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at),
        )

    def is_active(self, now: datetime | None = None) -> bool:
        """Check if the subscription grants access right now.

        Requires an access-granting status and ``now`` inside the current
        billing period. A missing period end never counts as active.
        """
        if self.status not in ACCESS_GRANTING_STATUSES:
            return False
        if self.current_period_end is None:
            return False
        now = now or datetime.now(UTC)
        if self.current_period_start and now < self.current_period_start:
            return False
        return now <= self.current_period_end
