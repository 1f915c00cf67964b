"""Dependency injection for the subscriptions module."""

from typing import Annotated

from fastapi import Depends, Request

from lingala.core.errors import UpstreamUnavailableError

from .service import SubscriptionService


async def get_subscription_service(request: Request) -> SubscriptionService:
    """Get subscription service from app state."""
    service = getattr(request.app.state, "subscription_service", None)
    if service is None:
        raise UpstreamUnavailableError("Subscription service not available")
    return service


SubscriptionServiceDep = Annotated[
    SubscriptionService, Depends(get_subscription_service)
]
