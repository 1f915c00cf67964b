"""Pydantic schemas for subscription status."""

from datetime import datetime

from pydantic import BaseModel

from .models import Subscription


class SubscriptionResponse(BaseModel):
    stripe_subscription_id: str
    status: str
    plan_type: str | None = None
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None

    @classmethod
    def from_subscription(cls, sub: Subscription) -> "SubscriptionResponse":
        return cls(
            stripe_subscription_id=sub.stripe_subscription_id,
            status=sub.status,
            plan_type=sub.plan_type,
            current_period_start=sub.current_period_start,
            current_period_end=sub.current_period_end,
        )


class SubscriptionStatusResponse(BaseModel):
    """Whether the caller currently holds premium access."""

    has_active_subscription: bool
    subscription: SubscriptionResponse | None = None
